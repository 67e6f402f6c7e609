"""
Booking status state machine.

PENDING -> CONFIRMED -> CHECKED_IN -> CHECKED_OUT -> COMPLETED, with
CANCELLED and NO_SHOW as terminal exits from PENDING or CONFIRMED.
Check-in straight from PENDING is allowed.
"""

from typing import Dict, FrozenSet

from propdesk.core.exceptions import StateConflict
from propdesk.models.base.enums import BookingStatus

_ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

# Statuses in which the stay dates may still be edited.
DATE_EDITABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

_ACTION_NAMES = {
    BookingStatus.CONFIRMED: "confirm",
    BookingStatus.CHECKED_IN: "check in",
    BookingStatus.CHECKED_OUT: "check out",
    BookingStatus.COMPLETED: "complete",
    BookingStatus.CANCELLED: "cancel",
    BookingStatus.NO_SHOW: "mark as no-show",
}


def allowed_transitions(current: BookingStatus) -> FrozenSet[BookingStatus]:
    return _ALLOWED_TRANSITIONS.get(current, frozenset())


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in allowed_transitions(current)


def validate_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise StateConflict naming the current status if the move is illegal."""
    if can_transition(current, target):
        return
    action = _ACTION_NAMES.get(target, f"move to {target.name}")
    raise StateConflict(
        f"Cannot {action} a booking with status {current.name}",
        current_status=current.name,
        target_status=target.name,
    )
