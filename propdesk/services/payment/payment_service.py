"""
Payment service.

Every payment mutation is followed by reconciliation of its booking in
the same transaction.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from propdesk.core.exceptions import StateConflict
from propdesk.models.base.enums import PaymentStatus
from propdesk.models.booking.booking import Booking
from propdesk.models.payment.payment import Payment
from propdesk.repositories.booking.booking_repository import BookingRepository
from propdesk.repositories.payment.payment_repository import PaymentRepository
from propdesk.schemas.core.domain_events import DomainEventType
from propdesk.schemas.payment.payment_base import PaymentCreate, PaymentUpdate
from propdesk.services.base.base_service import BaseService
from propdesk.services.base.event_dispatcher import EventDispatcher
from propdesk.services.payment.payment_reconciliation_service import PaymentReconciliationService
from propdesk.utils.money import quantize_money

_FAILABLE_STATUSES = frozenset({
    PaymentStatus.PENDING,
    PaymentStatus.PARTIALLY_PAID,
    PaymentStatus.PAID,
})


class PaymentService(BaseService[PaymentRepository]):
    """Records, edits, refunds and removes booking payments."""

    def __init__(
        self,
        db_session: Session,
        dispatcher: Optional[EventDispatcher] = None,
        payment_repository: Optional[PaymentRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(payment_repository or PaymentRepository(db_session), db_session, dispatcher)
        self.bookings = booking_repository or BookingRepository(db_session)
        self.reconciliation = PaymentReconciliationService(db_session, self.bookings, self.repository)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_payment(self, organization_id: str, payment_id: str) -> Payment:
        payment = self.repository.get_by_id(payment_id)
        self._ensure_owned(payment, organization_id)
        return payment

    def list_for_booking(self, organization_id: str, booking_id: str) -> List[Payment]:
        self._get_booking(organization_id, booking_id)
        return self.repository.find_for_booking(booking_id)

    def _get_booking(self, organization_id: str, booking_id: str) -> Booking:
        booking = self.bookings.get_by_id(booking_id)
        self._ensure_owned(booking, organization_id)
        return booking

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def record_payment(self, organization_id: str, data: PaymentCreate) -> Payment:
        """
        Record a payment against a booking and reconcile the booking.

        Raises:
            NotFoundError / ForbiddenError: booking missing or foreign
            ValidationError: a PAID amount would exceed the booking total
        """
        amount = quantize_money(data.amount)

        with self.transaction():
            booking = self._get_booking(organization_id, data.booking_id)
            if data.status == PaymentStatus.PAID:
                self.reconciliation.validate_payment_amount(booking, amount)

            payment = Payment(
                organization_id=organization_id,
                booking_id=booking.id,
                amount=amount,
                payment_method=data.payment_method,
                payment_type=data.payment_type,
                status=data.status,
                payment_reference=data.payment_reference,
                bank_reference=data.bank_reference,
                notes=data.notes,
            )
            if data.currency:
                payment.currency = data.currency
            if data.payment_date is not None:
                payment.payment_date = data.payment_date
            self.repository.create(payment)
            self.reconciliation.reconcile(booking.id)

        self._logger.info(
            "Payment recorded",
            extra={
                "payment_id": payment.id,
                "booking_id": booking.id,
                "amount": str(amount),
                "payment_status": payment.status.value,
            },
        )
        self._emit(
            DomainEventType.PAYMENT_RECEIVED,
            payment,
            organization_id,
            booking_id=booking.id,
            amount=str(amount),
        )
        return payment

    def update_payment(self, organization_id: str, payment_id: str, data: PaymentUpdate) -> Payment:
        """
        Edit a payment; reconciles when amount or status changes.
        """
        changes = {field: value for field, value in data.changes().items() if value is not None}
        if "amount" in changes:
            changes["amount"] = quantize_money(changes["amount"])

        with self.transaction():
            payment = self.get_payment(organization_id, payment_id)
            new_amount = changes.get("amount", payment.amount)
            new_status = changes.get("status", payment.status)
            balance_changed = new_amount != payment.amount or new_status != payment.status

            if balance_changed and new_status == PaymentStatus.PAID and payment.booking_id:
                booking = self.bookings.get_by_id(payment.booking_id)
                self.reconciliation.validate_payment_amount(
                    booking, new_amount, exclude_payment_id=payment.id
                )

            self.repository.update(payment, changes)
            if balance_changed and payment.booking_id:
                self.reconciliation.reconcile(payment.booking_id)

        self._logger.info(
            "Payment updated",
            extra={"payment_id": payment.id, "fields": sorted(changes)},
        )
        self._emit(DomainEventType.PAYMENT_UPDATED, payment, organization_id, fields=sorted(changes))
        return payment

    def delete_payment(self, organization_id: str, payment_id: str) -> None:
        with self.transaction():
            payment = self.get_payment(organization_id, payment_id)
            booking_id = payment.booking_id
            self.repository.delete(payment)
            if booking_id:
                self.reconciliation.reconcile(booking_id)

        self._logger.info("Payment deleted", extra={"payment_id": payment_id, "booking_id": booking_id})
        self._emit(DomainEventType.PAYMENT_DELETED, payment, organization_id, booking_id=booking_id)

    def refund_payment(self, organization_id: str, payment_id: str, reason: Optional[str] = None) -> Payment:
        """Refund a PAID payment; any other status is a state conflict."""
        with self.transaction():
            payment = self.get_payment(organization_id, payment_id)
            if payment.status != PaymentStatus.PAID:
                raise StateConflict(
                    f"Only paid payments can be refunded (status is {payment.status.name})",
                    current_status=payment.status.name,
                    target_status=PaymentStatus.REFUNDED.name,
                )
            payment.status = PaymentStatus.REFUNDED
            if reason:
                payment.notes = f"{payment.notes}\n\nRefund: {reason}" if payment.notes else f"Refund: {reason}"
            self.db.flush()
            if payment.booking_id:
                self.reconciliation.reconcile(payment.booking_id)

        self._logger.info("Payment refunded", extra={"payment_id": payment.id})
        self._emit(DomainEventType.PAYMENT_REFUNDED, payment, organization_id, amount=str(payment.amount))
        return payment

    def mark_failed(self, organization_id: str, payment_id: str, reason: Optional[str] = None) -> Payment:
        with self.transaction():
            payment = self.get_payment(organization_id, payment_id)
            if payment.status not in _FAILABLE_STATUSES:
                raise StateConflict(
                    f"Cannot mark a {payment.status.name} payment as failed",
                    current_status=payment.status.name,
                    target_status=PaymentStatus.FAILED.name,
                )
            payment.status = PaymentStatus.FAILED
            if reason:
                payment.notes = f"{payment.notes}\n\nFailed: {reason}" if payment.notes else f"Failed: {reason}"
            self.db.flush()
            if payment.booking_id:
                self.reconciliation.reconcile(payment.booking_id)

        self._logger.warning("Payment marked as failed", extra={"payment_id": payment.id})
        self._emit(DomainEventType.PAYMENT_FAILED, payment, organization_id)
        return payment

    def reconcile_booking(self, organization_id: str, booking_id: str) -> Booking:
        """Recompute a booking balance on demand."""
        with self.transaction():
            self._get_booking(organization_id, booking_id)
            booking = self.reconciliation.reconcile(booking_id)
        return booking
