"""
Payment reconciliation.

A booking's amount_paid is always recomputed from its PAID payment
rows, never adjusted incrementally, so repeated calls converge.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from propdesk.core.exceptions import ValidationError
from propdesk.core.logging import get_logger
from propdesk.models.booking.booking import Booking
from propdesk.repositories.booking.booking_repository import BookingRepository
from propdesk.repositories.payment.payment_repository import PaymentRepository
from propdesk.utils.money import quantize_money, to_decimal

logger = get_logger(__name__)


class PaymentReconciliationService:
    """Keeps booking balances in line with payment rows; flushes, never commits."""

    def __init__(
        self,
        db_session: Session,
        booking_repository: Optional[BookingRepository] = None,
        payment_repository: Optional[PaymentRepository] = None,
    ):
        self.db = db_session
        self.bookings = booking_repository or BookingRepository(db_session)
        self.payments = payment_repository or PaymentRepository(db_session)

    def reconcile(self, booking_id: str) -> Booking:
        """
        Recompute amount_paid for a booking from its PAID payments.

        amount_due and payment_status are derived from it on the model.

        Args:
            booking_id: Booking to reconcile

        Returns:
            The updated booking
        """
        self.db.flush()
        booking = self.bookings.get_by_id(booking_id)
        paid = quantize_money(self.payments.sum_paid_for_booking(booking_id))

        if to_decimal(booking.amount_paid) != paid:
            logger.info(
                "Booking balance reconciled",
                extra={
                    "booking_id": booking_id,
                    "previous_amount_paid": str(booking.amount_paid),
                    "amount_paid": str(paid),
                },
            )
        booking.amount_paid = paid
        self.db.flush()
        return booking

    def validate_payment_amount(
        self,
        booking: Booking,
        amount: Decimal,
        exclude_payment_id: Optional[str] = None,
    ) -> None:
        """
        Reject a PAID amount that would push the booking's paid total above its total.

        Args:
            booking: Booking the payment applies to
            amount: Amount of the new or edited payment
            exclude_payment_id: The payment being edited, left out of the current total

        Raises:
            ValidationError: details carry amount, amount_due and total_paid
        """
        total_paid = self.payments.sum_paid_for_booking(booking.id, exclude_payment_id=exclude_payment_id)
        total = to_decimal(booking.total_amount)
        amount = to_decimal(amount)

        if total_paid + amount > total:
            amount_due = total - total_paid
            raise ValidationError(
                f"Payment amount ({amount}) exceeds amount due ({amount_due})",
                field="amount",
                details={
                    "amount": str(amount),
                    "amount_due": str(amount_due),
                    "total_paid": str(total_paid),
                },
            )
