"""
iCalendar (RFC 5545) reader for external booking feeds.

Only VEVENT blocks are read, and only the properties needed to block
dates: UID, DTSTART, DTEND, SUMMARY and DESCRIPTION.
"""

import hashlib
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from propdesk.core.logging import get_logger
from propdesk.schemas.booking.booking_calendar import CalendarEvent

logger = get_logger(__name__)

Params = Dict[str, str]


def unfold_lines(text: str) -> List[str]:
    """Join folded continuation lines (those starting with a space or tab)."""
    lines: List[str] = []
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        elif raw.strip():
            lines.append(raw)
    return lines


def parse_content_line(line: str) -> Tuple[str, Params, str]:
    """
    Split ``NAME;PARAM=VALUE;...:value`` into its parts.

    Colons inside quoted parameter values do not end the name part.
    """
    in_quotes = False
    split_at = -1
    for index, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif char == ":" and not in_quotes:
            split_at = index
            break
    if split_at < 0:
        raise ValueError(f"Malformed content line: {line!r}")

    head, value = line[:split_at], line[split_at + 1:]
    name, *raw_params = head.split(";")
    params: Params = {}
    for raw in raw_params:
        key, _, param_value = raw.partition("=")
        params[key.upper()] = param_value.strip('"')
    return name.strip().upper(), params, value


def unescape_text(value: str) -> str:
    out = []
    chars = iter(value)
    for char in chars:
        if char != "\\":
            out.append(char)
            continue
        escaped = next(chars, "")
        out.append("\n" if escaped in ("n", "N") else escaped)
    return "".join(out)


def parse_ical_date(value: str, params: Optional[Params] = None) -> date:
    """
    Parse a DATE or DATE-TIME value into a calendar date.

    Supports:
    - YYYYMMDD (VALUE=DATE)
    - YYYYMMDDTHHMMSS, with or without a trailing Z
    - ISO 8601 forms with separators

    DATE-TIME values keep the wall-clock date they were written in.
    """
    v = (value or "").strip()
    if not v:
        raise ValueError("empty date value")

    if (params or {}).get("VALUE", "").upper() == "DATE" or (len(v) == 8 and v.isdigit()):
        return datetime.strptime(v[:8], "%Y%m%d").date()

    return date_parser.isoparse(v).date()


def _fallback_uid(start: date, end: date, summary: Optional[str]) -> str:
    digest = hashlib.sha1(f"{start.isoformat()}|{end.isoformat()}|{summary or ''}".encode("utf-8"))
    return f"generated-{digest.hexdigest()[:16]}"


def _build_event(props: Dict[str, Tuple[Params, str]]) -> Optional[CalendarEvent]:
    if "DTSTART" not in props:
        return None

    start_params, start_value = props["DTSTART"]
    start = parse_ical_date(start_value, start_params)
    if "DTEND" in props:
        end_params, end_value = props["DTEND"]
        end = parse_ical_date(end_value, end_params)
    else:
        end = start + timedelta(days=1)

    summary = unescape_text(props["SUMMARY"][1]).strip() if "SUMMARY" in props else None
    description = unescape_text(props["DESCRIPTION"][1]).strip() if "DESCRIPTION" in props else None
    uid = props["UID"][1].strip() if "UID" in props else ""

    return CalendarEvent(
        uid=uid or _fallback_uid(start, end, summary),
        start=start,
        end=end,
        summary=summary or None,
        description=description or None,
    )


def parse_ical(text: str, errors: Optional[List[str]] = None) -> List[CalendarEvent]:
    """
    Parse an iCalendar document into events.

    Args:
        text: Raw feed body
        errors: When given, receives a message for each malformed event;
            malformed events are skipped either way

    Returns:
        Events in feed order

    Raises:
        ValueError: the text is not an iCalendar document
    """
    lines = unfold_lines((text or "").lstrip("\ufeff"))
    if not lines or lines[0].strip().upper() != "BEGIN:VCALENDAR":
        raise ValueError("Not an iCalendar document")

    events: List[CalendarEvent] = []
    current: Optional[Dict[str, Tuple[Params, str]]] = None
    nested = 0

    for line in lines:
        upper = line.strip().upper()

        if upper == "BEGIN:VEVENT":
            current = {}
            nested = 0
            continue

        if current is None:
            continue

        if upper.startswith("BEGIN:"):
            nested += 1
            continue
        if upper.startswith("END:") and nested:
            nested -= 1
            continue

        if upper == "END:VEVENT":
            try:
                event = _build_event(current)
            except ValueError as e:
                uid = current.get("UID", ({}, "?"))[1]
                message = f"Skipped malformed event {uid}: {e}"
                logger.warning(message)
                if errors is not None:
                    errors.append(message)
                event = None
            if event is not None:
                events.append(event)
            current = None
            continue

        if nested:
            continue

        try:
            name, params, value = parse_content_line(line)
        except ValueError:
            continue
        # First occurrence wins
        current.setdefault(name, (params, value))

    return events
