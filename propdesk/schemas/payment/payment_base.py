"""
Payment schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from propdesk.models.base.enums import PaymentMethod, PaymentStatus, PaymentType
from propdesk.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseUpdateSchema

__all__ = [
    "PaymentCreate",
    "PaymentUpdate",
    "PaymentResponse",
    "RefundRequest",
]


class PaymentCreate(BaseCreateSchema):
    booking_id: str
    amount: Decimal = Field(..., gt=0, description="Amount received")
    payment_method: PaymentMethod
    payment_type: PaymentType = PaymentType.BOOKING
    status: PaymentStatus = Field(PaymentStatus.PAID, description="Defaults to PAID")
    payment_date: Optional[datetime] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    payment_reference: Optional[str] = Field(None, max_length=100)
    bank_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)


class PaymentUpdate(BaseUpdateSchema):
    amount: Optional[Decimal] = Field(None, gt=0)
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = Field(None, max_length=100)
    bank_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)


class RefundRequest(BaseCreateSchema):
    reason: Optional[str] = Field(None, max_length=1000)


class PaymentResponse(BaseResponseSchema):
    organization_id: str
    booking_id: Optional[str] = None
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    payment_type: PaymentType
    status: PaymentStatus
    payment_date: datetime
    payment_reference: Optional[str] = None
    bank_reference: Optional[str] = None
    notes: Optional[str] = None
