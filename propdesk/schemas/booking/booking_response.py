"""Booking read models."""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from propdesk.models.base.enums import BookingSource, BookingStatus, BookingType, PaymentStatus
from propdesk.schemas.common.base import BaseResponseSchema

__all__ = ["BookingResponse"]


class BookingResponse(BaseResponseSchema):
    """
    Booking as returned by the API, including derived balance fields.
    """

    booking_reference: str
    organization_id: str
    property_id: str
    booking_type: BookingType
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    number_of_guests: int
    check_in_date: Date
    check_out_date: Date
    number_of_nights: int = Field(..., description="Derived from the stay dates")
    base_rate: Decimal
    total_amount: Decimal
    additional_charges: Decimal
    amount_paid: Decimal
    amount_due: Decimal = Field(..., description="total_amount - amount_paid")
    payment_status: PaymentStatus
    status: BookingStatus
    booking_source: BookingSource
    external_id: Optional[str] = None
    guest_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
