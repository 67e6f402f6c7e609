"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.orm import Session

from propdesk.core.exceptions import ForbiddenError
from propdesk.core.logging import get_logger
from propdesk.repositories.base.base_repository import BaseRepository
from propdesk.schemas.core.domain_events import DomainEventType
from propdesk.services.base.event_dispatcher import EventDispatcher

TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(Generic[TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Transaction management utilities
    - Tenant ownership checks
    - Post-commit domain events
    """

    def __init__(
        self,
        repository: TRepo,
        db_session: Session,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
            dispatcher: Domain event dispatcher
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self.dispatcher = dispatcher or EventDispatcher()
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Args:
            auto_commit: Whether to commit automatically on success

        Yields:
            The database session

        Example:
            with self.transaction():
                self.repository.create(entity)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction rolled back: {e}")
            raise

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def _ensure_owned(
        self,
        entity: Any,
        organization_id: str,
        owner_field: str = "organization_id",
    ) -> None:
        """
        Raise ForbiddenError when the entity belongs to another organization.
        """
        if getattr(entity, owner_field) != organization_id:
            self._logger.warning(
                "Cross-organization access denied",
                extra={
                    "resource": entity.__class__.__name__,
                    "resource_id": entity.id,
                    "organization_id": organization_id,
                },
            )
            raise ForbiddenError(
                f"{entity.__class__.__name__} does not belong to your organization",
                details={"resource_id": entity.id},
            )

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _emit(
        self,
        event_type: DomainEventType,
        aggregate: Any,
        organization_id: Optional[str] = None,
        **payload: Any,
    ) -> None:
        """Publish an event for a committed aggregate; failures are logged only."""
        try:
            self.dispatcher.emit(
                event_type,
                aggregate_id=aggregate.id,
                aggregate_type=aggregate.__class__.__name__,
                organization_id=organization_id,
                **payload,
            )
        except Exception as e:
            self._logger.warning(
                f"Failed to emit {event_type.value}: {e}",
                extra={"aggregate_id": aggregate.id},
            )
