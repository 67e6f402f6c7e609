"""
Booking model.

A guest stay on one property over the half-open range
[check_in_date, check_out_date). Nights, amount due and payment status
are derived from stored columns and never written directly.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propdesk.models.base.base_model import TimestampModel
from propdesk.models.base.enums import (
    BLOCKING_BOOKING_STATUSES,
    BookingSource,
    BookingStatus,
    BookingType,
    PaymentStatus,
)
from propdesk.utils.date_utils import nights_between
from propdesk.utils.money import ZERO, to_decimal

if TYPE_CHECKING:
    from propdesk.models.payment.payment import Payment
    from propdesk.models.property.property import Property

__all__ = ["Booking"]


class Booking(TimestampModel):
    """
    Guest booking for a property.

    Attributes:
        booking_reference: Unique human-readable reference
        organization_id: Organization the booking belongs to
        property_id: Booked property
        check_in_date: First night of the stay
        check_out_date: Departure day, free for the next guest
        base_rate: Nightly rate the total was computed from
        total_amount: Amount owed for the stay including extra charges
        additional_charges: Charges added at check-out
        amount_paid: Sum of PAID payments, written by reconciliation only
        booking_source: Channel the booking came from
        external_id: UID of the event in the external calendar feed
    """

    __tablename__ = "bookings"

    booking_reference: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    property_id: Mapped[str] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    booking_type: Mapped[BookingType] = mapped_column(
        Enum(BookingType),
        nullable=False,
        default=BookingType.SHORT_TERM,
    )

    # Guest
    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    number_of_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Stay
    check_in_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    check_out_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)

    # Pricing (precision: 12, scale: 2)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    additional_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)

    # Status
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    booking_source: Mapped[BookingSource] = mapped_column(
        Enum(BookingSource),
        nullable=False,
        default=BookingSource.DIRECT,
    )

    external_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    guest_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Lifecycle timestamps
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    checked_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    checked_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    rental_property: Mapped["Property"] = relationship("Property", back_populates="bookings")
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="booking",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_booking_dates_order"),
        UniqueConstraint("property_id", "external_id", name="uq_booking_property_external_id"),
        Index("ix_bookings_property_dates", "property_id", "check_in_date", "check_out_date"),
    )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def number_of_nights(self) -> int:
        return nights_between(self.check_in_date, self.check_out_date)

    @property
    def amount_due(self) -> Decimal:
        return to_decimal(self.total_amount) - to_decimal(self.amount_paid)

    @property
    def payment_status(self) -> PaymentStatus:
        paid = to_decimal(self.amount_paid)
        total = to_decimal(self.total_amount)
        if paid >= total:
            return PaymentStatus.PAID
        if paid > ZERO:
            return PaymentStatus.PARTIALLY_PAID
        return PaymentStatus.PENDING

    @property
    def is_blocking(self) -> bool:
        """Whether this booking occupies its date range."""
        return self.status in BLOCKING_BOOKING_STATUSES

    @property
    def is_external(self) -> bool:
        return self.external_id is not None

    def append_internal_note(self, note: str) -> None:
        if not note:
            return
        self.internal_notes = f"{self.internal_notes}\n\n{note}" if self.internal_notes else note

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference='{self.booking_reference}', "
            f"status={self.status})>"
        )
