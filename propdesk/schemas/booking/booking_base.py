"""
Booking request schemas.

Range checks (check-out after check-in) are enforced by the booking
service so that every entry point reports them the same way.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Optional, Union

from pydantic import EmailStr, Field

from propdesk.models.base.enums import BookingSource, BookingStatus, BookingType
from propdesk.schemas.common.base import BaseCreateSchema, BaseSchema, BaseUpdateSchema

__all__ = [
    "BookingCreate",
    "BookingRequest",
    "BookingUpdate",
    "AvailabilityQuery",
    "CheckInRequest",
    "CheckOutRequest",
    "CancelRequest",
]


class BookingCreate(BaseCreateSchema):
    """Booking entered by staff for one of the organization's properties."""

    property_id: str = Field(..., description="Property being booked")
    guest_name: str = Field(..., min_length=1, max_length=255)
    guest_email: Union[EmailStr, None] = Field(None)
    guest_phone: Union[str, None] = Field(None, max_length=50)
    number_of_guests: int = Field(1, ge=1, le=50)
    check_in_date: Date = Field(..., description="First night of the stay")
    check_out_date: Date = Field(..., description="Departure day")
    booking_type: BookingType = Field(BookingType.SHORT_TERM)
    booking_source: BookingSource = Field(BookingSource.DIRECT)
    status: BookingStatus = Field(
        BookingStatus.CONFIRMED,
        description="Initial status, CONFIRMED or PENDING",
    )
    total_amount: Union[Decimal, None] = Field(
        None,
        ge=0,
        description="Agreed total; computed from the property rates when omitted",
    )
    guest_notes: Union[str, None] = Field(None, max_length=2000)
    internal_notes: Union[str, None] = Field(None, max_length=2000)


class BookingRequest(BaseCreateSchema):
    """Booking request submitted through the public website form."""

    property_id: str
    guest_name: str = Field(..., min_length=1, max_length=255)
    guest_email: EmailStr
    guest_phone: Union[str, None] = Field(None, max_length=50)
    number_of_guests: int = Field(1, ge=1, le=50)
    check_in_date: Date
    check_out_date: Date
    guest_notes: Union[str, None] = Field(None, max_length=2000)


class BookingUpdate(BaseUpdateSchema):
    """Partial booking update."""

    guest_name: Optional[str] = Field(None, min_length=1, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(None, max_length=50)
    number_of_guests: Optional[int] = Field(None, ge=1, le=50)
    check_in_date: Optional[Date] = None
    check_out_date: Optional[Date] = None
    guest_notes: Optional[str] = Field(None, max_length=2000)
    internal_notes: Optional[str] = Field(None, max_length=2000)


class AvailabilityQuery(BaseSchema):
    property_id: str
    check_in_date: Date
    check_out_date: Date
    exclude_booking_id: Optional[str] = None


class CheckInRequest(BaseSchema):
    booking_id: str
    notes: Optional[str] = Field(None, max_length=2000)


class CheckOutRequest(BaseSchema):
    booking_id: str
    notes: Optional[str] = Field(None, max_length=2000)
    damage_report: Optional[str] = Field(None, max_length=2000)
    additional_charges: Decimal = Field(Decimal("0"), ge=0)


class CancelRequest(BaseSchema):
    reason: Optional[str] = Field(None, max_length=1000)
