"""
Base repository with standardized CRUD operations.

Repositories only flush; commit and rollback belong to the service that
owns the unit of work.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from propdesk.core.exceptions import NotFoundError
from propdesk.core.logging import get_logger
from propdesk.models.base.base_model import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository for a single model.
    """

    #: Human readable name used in not-found errors
    resource_name: str = "Resource"

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """Add entity to the session and flush so defaults and ids are populated."""
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: str, for_update: bool = False) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID
            for_update: Lock the row until the transaction ends

        Returns:
            Entity or None
        """
        query = select(self.model).where(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def get_by_id(self, id: str, for_update: bool = False) -> ModelType:
        """
        Get entity by ID or raise NotFoundError.
        """
        entity = self.find_by_id(id, for_update=for_update)
        if entity is None:
            raise NotFoundError(self.resource_name, id)
        return entity

    # ==================== Update / Delete ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """Apply attribute changes and flush."""
        for field, value in data.items():
            setattr(entity, field, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.flush()
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")
