"""
Payment model.

Only payments with status PAID count towards a booking's amount paid.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.config.settings import settings
from propdesk.models.base.base_model import TimestampModel
from propdesk.models.base.enums import PaymentMethod, PaymentStatus, PaymentType
from propdesk.models.base.mixins import utcnow

if TYPE_CHECKING:
    from propdesk.models.booking.booking import Booking

__all__ = ["Payment"]


class Payment(TimestampModel):
    """Money received (or expected) from a guest or tenant."""

    __tablename__ = "payments"

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    booking_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tenant_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)

    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    payment_type: Mapped[PaymentType] = mapped_column(
        Enum(PaymentType),
        nullable=False,
        default=PaymentType.BOOKING,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=lambda: settings.CURRENCY)
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PAID,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bank_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    booking: Mapped[Optional["Booking"]] = relationship("Booking", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, amount={self.amount}, status={self.status})>"
