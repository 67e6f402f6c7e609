"""
Booking repository with availability and calendar queries.
"""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from propdesk.models.base.enums import BLOCKING_BOOKING_STATUSES, BookingSource, BookingStatus
from propdesk.models.booking.booking import Booking
from propdesk.repositories.base.base_repository import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    resource_name = "Booking"

    def __init__(self, db: Session):
        super().__init__(Booking, db)

    # ==================== AVAILABILITY ====================

    def find_overlapping(
        self,
        property_id: str,
        check_in_date: date,
        check_out_date: date,
        statuses: Iterable[BookingStatus] = BLOCKING_BOOKING_STATUSES,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Find bookings on a property whose range overlaps [check_in, check_out).

        Args:
            property_id: Property ID
            check_in_date: Candidate check-in
            check_out_date: Candidate check-out
            statuses: Statuses considered blocking
            exclude_booking_id: Booking ID to exclude (for modifications)

        Returns:
            Overlapping bookings ordered by check-in
        """
        query = select(Booking).where(
            and_(
                Booking.property_id == property_id,
                Booking.status.in_(list(statuses)),
                Booking.check_in_date < check_out_date,
                Booking.check_out_date > check_in_date,
            )
        )

        if exclude_booking_id:
            query = query.where(Booking.id != exclude_booking_id)

        query = query.order_by(Booking.check_in_date)
        return list(self.db.execute(query).scalars().all())

    def find_by_external_id(self, property_id: str, external_id: str) -> Optional[Booking]:
        query = select(Booking).where(
            Booking.property_id == property_id,
            Booking.external_id == external_id,
        )
        return self.db.execute(query).scalars().first()

    def find_blocking_for_property(self, property_id: str) -> List[Booking]:
        """Bookings that occupy the calendar, ordered by check-in."""
        query = (
            select(Booking)
            .where(
                Booking.property_id == property_id,
                Booking.status.in_(list(BLOCKING_BOOKING_STATUSES)),
            )
            .order_by(Booking.check_in_date, Booking.created_at)
        )
        return list(self.db.execute(query).scalars().all())

    def has_other_checked_in(self, property_id: str, exclude_booking_id: str) -> bool:
        query = select(Booking.id).where(
            Booking.property_id == property_id,
            Booking.status == BookingStatus.CHECKED_IN,
            Booking.id != exclude_booking_id,
        )
        return self.db.execute(query.limit(1)).first() is not None

    # ==================== LISTING ====================

    def search(
        self,
        organization_id: str,
        property_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        booking_source: Optional[BookingSource] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Booking]:
        """
        Bookings for an organization, optionally narrowed by property,
        status, source, a date window the stay must overlap and a
        case-insensitive match on guest name, email or phone.
        """
        query = select(Booking).where(Booking.organization_id == organization_id)
        if property_id:
            query = query.where(Booking.property_id == property_id)
        if status:
            query = query.where(Booking.status == status)
        if start_date:
            query = query.where(Booking.check_out_date > start_date)
        if end_date:
            query = query.where(Booking.check_in_date < end_date)
        if booking_source:
            query = query.where(Booking.booking_source == booking_source)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(Booking.guest_name).like(pattern),
                    func.lower(Booking.guest_email).like(pattern),
                    func.lower(Booking.guest_phone).like(pattern),
                )
            )

        query = query.order_by(Booking.check_in_date.desc()).offset(offset).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def find_check_ins_between(self, organization_id: str, start: date, end: date) -> List[Booking]:
        """Confirmed arrivals with check-in in [start, end]."""
        query = (
            select(Booking)
            .where(
                Booking.organization_id == organization_id,
                Booking.status == BookingStatus.CONFIRMED,
                Booking.check_in_date >= start,
                Booking.check_in_date <= end,
            )
            .order_by(Booking.check_in_date)
        )
        return list(self.db.execute(query).scalars().all())

    def find_check_outs_between(self, organization_id: str, start: date, end: date) -> List[Booking]:
        """In-house guests with check-out in [start, end]."""
        query = (
            select(Booking)
            .where(
                Booking.organization_id == organization_id,
                Booking.status == BookingStatus.CHECKED_IN,
                Booking.check_out_date >= start,
                Booking.check_out_date <= end,
            )
            .order_by(Booking.check_out_date)
        )
        return list(self.db.execute(query).scalars().all())
