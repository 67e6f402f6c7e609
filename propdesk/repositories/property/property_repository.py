"""Property data access."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from propdesk.models.property.property import Property
from propdesk.repositories.base.base_repository import BaseRepository


class PropertyRepository(BaseRepository[Property]):
    resource_name = "Property"

    def __init__(self, db: Session):
        super().__init__(Property, db)

    def lock(self, property_id: str) -> Property:
        """
        Load the property with a row lock.

        Serializes availability check and insert for one property on
        backends that support SELECT ... FOR UPDATE.
        """
        return self.get_by_id(property_id, for_update=True)

    def find_syncable(self, owner_id: Optional[str] = None) -> List[Property]:
        """Properties with calendar sync switched on."""
        query = select(Property).where(Property.sync_calendar.is_(True))
        if owner_id is not None:
            query = query.where(Property.owner_id == owner_id)
        return list(self.db.execute(query.order_by(Property.id)).scalars().all())
