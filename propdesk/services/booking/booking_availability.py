"""
Availability checking over half-open stay ranges.

Two stays [a_start, a_end) and [b_start, b_end) conflict iff
a_start < b_end and a_end > b_start. A guest checking out on the day
another checks in therefore does not conflict.
"""

from datetime import date
from typing import Iterable, List, Optional, Protocol

from propdesk.core.exceptions import AvailabilityConflict, InvalidDateRangeError
from propdesk.core.logging import get_logger
from propdesk.models.base.enums import BLOCKING_BOOKING_STATUSES
from propdesk.models.booking.booking import Booking
from propdesk.schemas.booking.booking_calendar import AvailabilityResult, ConflictSummary
from propdesk.utils.date_utils import is_valid_range

logger = get_logger(__name__)


class OverlapSource(Protocol):
    """Anything that can narrow down candidate bookings for a property."""

    def find_overlapping(
        self,
        property_id: str,
        check_in_date: date,
        check_out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        ...


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open interval overlap; symmetric in its two ranges."""
    return a_start < b_end and a_end > b_start


def find_conflicts(
    bookings: Iterable[Booking],
    check_in_date: date,
    check_out_date: date,
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """
    Blocking bookings whose stay overlaps [check_in_date, check_out_date).

    Args:
        bookings: Candidate bookings on one property
        check_in_date: Candidate check-in
        check_out_date: Candidate check-out
        exclude_booking_id: Booking compared against itself during an update

    Returns:
        Conflicting bookings in input order
    """
    return [
        booking
        for booking in bookings
        if booking.status in BLOCKING_BOOKING_STATUSES
        and booking.id != exclude_booking_id
        and ranges_overlap(booking.check_in_date, booking.check_out_date, check_in_date, check_out_date)
    ]


def summarize_conflicts(conflicts: Iterable[Booking]) -> List[ConflictSummary]:
    return [
        ConflictSummary(
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
            guest_name=booking.guest_name,
            check_in_date=booking.check_in_date,
            check_out_date=booking.check_out_date,
            status=booking.status,
        )
        for booking in conflicts
    ]


class AvailabilityChecker:
    """
    Repository-backed availability checks.

    The repository narrows rows with the same inequality in SQL; the pure
    predicate is applied again to the rows so both paths always agree.
    """

    def __init__(self, bookings: OverlapSource):
        self.bookings = bookings

    def check_availability(
        self,
        property_id: str,
        check_in_date: date,
        check_out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        if not is_valid_range(check_in_date, check_out_date):
            raise InvalidDateRangeError(check_in_date, check_out_date)

        candidates = self.bookings.find_overlapping(
            property_id,
            check_in_date,
            check_out_date,
            exclude_booking_id=exclude_booking_id,
        )
        conflicts = find_conflicts(candidates, check_in_date, check_out_date, exclude_booking_id)
        return AvailabilityResult(available=not conflicts, conflicts=summarize_conflicts(conflicts))

    def ensure_available(
        self,
        property_id: str,
        check_in_date: date,
        check_out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Raise AvailabilityConflict listing the blocking bookings."""
        result = self.check_availability(property_id, check_in_date, check_out_date, exclude_booking_id)
        if result.available:
            return

        logger.info(
            "Availability conflict",
            extra={
                "property_id": property_id,
                "check_in_date": check_in_date.isoformat(),
                "check_out_date": check_out_date.isoformat(),
                "conflict_count": len(result.conflicts),
            },
        )
        raise AvailabilityConflict(
            property_id,
            [conflict.model_dump(mode="json") for conflict in result.conflicts],
        )
