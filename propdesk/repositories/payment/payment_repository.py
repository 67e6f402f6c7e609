"""Payment data access."""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from propdesk.models.base.enums import PaymentStatus
from propdesk.models.payment.payment import Payment
from propdesk.repositories.base.base_repository import BaseRepository
from propdesk.utils.money import quantize_money


class PaymentRepository(BaseRepository[Payment]):
    resource_name = "Payment"

    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def find_for_booking(self, booking_id: str) -> List[Payment]:
        query = (
            select(Payment)
            .where(Payment.booking_id == booking_id)
            .order_by(Payment.payment_date.desc())
        )
        return list(self.db.execute(query).scalars().all())

    def sum_paid_for_booking(self, booking_id: str, exclude_payment_id: Optional[str] = None) -> Decimal:
        """
        Total of PAID payments for a booking.

        Args:
            booking_id: Booking ID
            exclude_payment_id: Payment left out of the sum (used when validating an edit)
        """
        query = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.booking_id == booking_id,
            Payment.status == PaymentStatus.PAID,
        )
        if exclude_payment_id:
            query = query.where(Payment.id != exclude_payment_id)
        return quantize_money(self.db.execute(query).scalar_one())
