"""
Availability, pricing and calendar value objects.
"""

from datetime import date as Date
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field, HttpUrl

from propdesk.models.base.enums import BookingSource, BookingStatus
from propdesk.schemas.common.base import BaseSchema

__all__ = [
    "ConflictSummary",
    "AvailabilityResult",
    "PriceQuote",
    "CalendarEvent",
    "SyncResult",
    "CalendarDocument",
    "CalendarSyncRequest",
]


class ConflictSummary(BaseSchema):
    """Minimal description of a blocking booking."""

    booking_id: str
    booking_reference: str
    guest_name: str
    check_in_date: Date
    check_out_date: Date
    status: BookingStatus


class AvailabilityResult(BaseSchema):
    available: bool
    conflicts: List[ConflictSummary] = Field(default_factory=list)


class PriceQuote(BaseSchema):
    """Unrounded price for a stay."""

    nights: int
    base_rate: Decimal
    total_amount: Decimal


class CalendarEvent(BaseSchema):
    """A VEVENT parsed from an external feed; never persisted as is."""

    uid: str
    start: Date
    end: Date
    summary: Optional[str] = None
    description: Optional[str] = None


class SyncResult(BaseSchema):
    imported: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)

    def merge(self, other: "SyncResult") -> "SyncResult":
        return SyncResult(
            imported=self.imported + other.imported,
            updated=self.updated + other.updated,
            errors=[*self.errors, *other.errors],
        )


class CalendarDocument(BaseSchema):
    model_config = ConfigDict(str_strip_whitespace=False)

    content: str
    filename: str
    media_type: str = "text/calendar; charset=utf-8"


class CalendarSyncRequest(BaseSchema):
    property_id: str
    calendar_url: HttpUrl
    source: BookingSource = BookingSource.OTHER
