"""
iCalendar (RFC 5545) writer for property availability exports.
"""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from propdesk.models.base.enums import BookingStatus
from propdesk.models.booking.booking import Booking

CRLF = "\r\n"
MAX_LINE_OCTETS = 75


def escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """
    Fold a content line at 75 octets.

    Multi-byte characters are never split; continuation lines start with
    a single space which counts towards their length.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts: List[str] = []
    current = ""
    current_size = 0
    limit = MAX_LINE_OCTETS
    for char in line:
        size = len(char.encode("utf-8"))
        if current_size + size > limit:
            parts.append(current)
            current, current_size = "", 0
            limit = MAX_LINE_OCTETS - 1
        current += char
        current_size += size
    parts.append(current)
    return (CRLF + " ").join(parts)


def format_date(value: date) -> str:
    return value.strftime("%Y%m%d")


def format_timestamp(value: Optional[datetime]) -> str:
    """UTC DATE-TIME; naive values are taken to be UTC already."""
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _event_lines(booking: Booking, uid_domain: str) -> List[str]:
    description = (
        f"Booking Reference: {booking.booking_reference}\n"
        f"Guests: {booking.number_of_guests}\n"
        f"Source: {booking.booking_source.name}"
    )
    event_status = "TENTATIVE" if booking.status == BookingStatus.PENDING else "CONFIRMED"
    return [
        "BEGIN:VEVENT",
        f"UID:{booking.id}@{uid_domain}",
        f"DTSTAMP:{format_timestamp(booking.created_at)}",
        f"DTSTART;VALUE=DATE:{format_date(booking.check_in_date)}",
        f"DTEND;VALUE=DATE:{format_date(booking.check_out_date)}",
        f"SUMMARY:{escape_text(f'{booking.guest_name} - {booking.status.name}')}",
        f"DESCRIPTION:{escape_text(description)}",
        f"STATUS:{event_status}",
        "END:VEVENT",
    ]


def build_calendar(
    calendar_name: str,
    bookings: Iterable[Booking],
    prodid: str,
    uid_domain: str,
) -> str:
    """
    Render a VCALENDAR with one all-day VEVENT per booking.

    Args:
        calendar_name: X-WR-CALNAME shown by subscribing clients
        bookings: Bookings in the order they should appear
        prodid: PRODID identifying this product
        uid_domain: Domain appended to booking ids to form event UIDs
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_text(calendar_name)}",
    ]
    for booking in bookings:
        lines.extend(_event_lines(booking, uid_domain))
    lines.append("END:VCALENDAR")
    return CRLF.join(fold_line(line) for line in lines) + CRLF
