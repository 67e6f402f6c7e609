from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from propdesk.models.base.enums import BookingSource, BookingStatus
from propdesk.services.integrations.ical_parser import (
    parse_content_line,
    parse_ical,
    parse_ical_date,
    unescape_text,
    unfold_lines,
)
from propdesk.services.integrations.ical_writer import CRLF, build_calendar, escape_text, fold_line

from tests.conftest import ical_feed, vevent


class TestParser:
    def test_reads_all_day_events(self):
        feed = ical_feed(
            vevent("abc123@airbnb.com", "20240301", "20240305"),
            vevent("def456@airbnb.com", "20240310", "20240312", summary="Not available"),
        )

        events = parse_ical(feed)

        assert [e.uid for e in events] == ["abc123@airbnb.com", "def456@airbnb.com"]
        assert (events[0].start, events[0].end) == (date(2024, 3, 1), date(2024, 3, 5))
        assert events[1].summary == "Not available"

    def test_unfolds_continuation_lines(self):
        text = "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nUID:long-uid\r\n -continued\r\n\tand-tab\r\n" \
               "DTSTART;VALUE=DATE:20240301\r\nDTEND;VALUE=DATE:20240302\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"

        assert parse_ical(text)[0].uid == "long-uid-continuedand-tab"

    def test_accepts_byte_order_mark(self):
        text = "\ufeff" + ical_feed(vevent("abc123", "20240301", "20240304"))

        events = parse_ical(text)

        assert [(e.uid, e.end) for e in events] == [("abc123", date(2024, 3, 4))]

    def test_accepts_bare_newlines(self):
        text = ical_feed(vevent("lf-only", "20240301", "20240302")).replace("\r\n", "\n")

        assert parse_ical(text)[0].uid == "lf-only"

    def test_unescapes_text(self):
        feed = ical_feed(
            "UID:esc\r\nDTSTART;VALUE=DATE:20240301\r\nDTEND;VALUE=DATE:20240302\r\n"
            "SUMMARY:Smith\\, J\\; family\r\nDESCRIPTION:Line one\\nLine two\\\\end"
        )

        event = parse_ical(feed)[0]

        assert event.summary == "Smith, J; family"
        assert event.description == "Line one\nLine two\\end"

    def test_nested_alarm_properties_are_ignored(self):
        feed = ical_feed(
            "UID:with-alarm\r\nDTSTART;VALUE=DATE:20240301\r\n"
            "BEGIN:VALARM\r\nDTEND;VALUE=DATE:20250101\r\nSUMMARY:Reminder\r\nEND:VALARM\r\n"
            "DTEND;VALUE=DATE:20240303\r\nSUMMARY:Reserved"
        )

        event = parse_ical(feed)[0]

        assert event.end == date(2024, 3, 3)
        assert event.summary == "Reserved"

    def test_date_time_values_keep_wall_clock_date(self):
        feed = ical_feed(
            "UID:timed\r\nDTSTART:20240301T150000Z\r\nDTEND;TZID=Africa/Johannesburg:20240304T100000"
        )

        event = parse_ical(feed)[0]

        assert (event.start, event.end) == (date(2024, 3, 1), date(2024, 3, 4))

    def test_missing_dtend_defaults_to_one_night(self):
        event = parse_ical(ical_feed("UID:single\r\nDTSTART;VALUE=DATE:20240229"))[0]

        assert event.end == date(2024, 3, 1)

    def test_missing_uid_gets_stable_fallback(self):
        body = "DTSTART;VALUE=DATE:20240301\r\nDTEND;VALUE=DATE:20240302\r\nSUMMARY:Blocked"

        first = parse_ical(ical_feed(body))[0].uid
        second = parse_ical(ical_feed(body))[0].uid

        assert first == second
        assert first.startswith("generated-")

    def test_missing_summary_is_none(self):
        event = parse_ical(ical_feed(vevent("no-summary", "20240301", "20240302", summary=None)))[0]

        assert event.summary is None

    def test_malformed_event_is_skipped_and_reported(self):
        feed = ical_feed(
            vevent("bad-date", "2024-13-45", "20240302"),
            vevent("good", "20240301", "20240302"),
            "UID:no-start\r\nSUMMARY:Nothing",
        )
        errors = []

        events = parse_ical(feed, errors=errors)

        assert [e.uid for e in events] == ["good"]
        assert len(errors) == 1
        assert errors[0].startswith("Skipped malformed event bad-date")

    @pytest.mark.parametrize("text", ["", "<html>Not found</html>", "BEGIN:VEVENT\r\nEND:VEVENT"])
    def test_rejects_non_calendar_documents(self, text):
        with pytest.raises(ValueError):
            parse_ical(text)

    def test_content_line_with_quoted_colon(self):
        name, params, value = parse_content_line('ATTENDEE;CN="Desk: Front":mailto:desk@propmail.co.za')

        assert name == "ATTENDEE"
        assert params == {"CN": "Desk: Front"}
        assert value == "mailto:desk@propmail.co.za"

    def test_parse_date_forms(self):
        assert parse_ical_date("20240301", {"VALUE": "DATE"}) == date(2024, 3, 1)
        assert parse_ical_date("20240301") == date(2024, 3, 1)
        assert parse_ical_date("2024-03-01T23:30:00") == date(2024, 3, 1)

    def test_unfold_drops_blank_lines(self):
        assert unfold_lines("A:1\r\n\r\nB:2\r\n") == ["A:1", "B:2"]

    def test_unescape_trailing_backslash(self):
        assert unescape_text("end\\") == "end"


def _booking(**overrides):
    values = dict(
        id="b-1",
        booking_reference="BK-LQ3X0F2A-7K2Q",
        guest_name="Jane Doe",
        number_of_guests=2,
        booking_source=BookingSource.DIRECT,
        status=BookingStatus.CONFIRMED,
        check_in_date=date(2024, 3, 1),
        check_out_date=date(2024, 3, 5),
        created_at=datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc),
        total_amount=Decimal("3200"),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestWriter:
    def test_escape_text(self):
        assert escape_text("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"

    def test_short_lines_are_not_folded(self):
        assert fold_line("SUMMARY:short") == "SUMMARY:short"

    def test_fold_line_limits_octets(self):
        folded = fold_line("DESCRIPTION:" + "x" * 200)

        parts = folded.split(CRLF)
        assert all(len(part.encode("utf-8")) <= 75 for part in parts)
        assert all(part.startswith(" ") for part in parts[1:])
        assert "".join(p[1:] if i else p for i, p in enumerate(parts)) == "DESCRIPTION:" + "x" * 200

    def test_fold_line_never_splits_multibyte_characters(self):
        folded = fold_line("SUMMARY:" + "é" * 60)

        for part in folded.split(CRLF):
            assert len(part.encode("utf-8")) <= 75
            part.encode("utf-8").decode("utf-8")

    def test_build_calendar(self):
        text = build_calendar(
            calendar_name="Sea View, Cottage",
            bookings=[_booking(), _booking(id="b-2", status=BookingStatus.PENDING, guest_name="John Smith")],
            prodid="-//PropDesk//Calendar//EN",
            uid_domain="propdesk.app",
        )

        assert text.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
        assert text.endswith("END:VCALENDAR\r\n")
        assert "\n" not in text.replace(CRLF, "")
        assert "X-WR-CALNAME:Sea View\\, Cottage" in text
        assert "UID:b-1@propdesk.app" in text
        assert "DTSTART;VALUE=DATE:20240301" in text
        assert "DTEND;VALUE=DATE:20240305" in text
        assert "DTSTAMP:20240201T093000Z" in text
        assert "SUMMARY:Jane Doe - CONFIRMED" in text
        assert "SUMMARY:John Smith - PENDING" in text
        assert text.count("BEGIN:VEVENT") == 2
        assert "STATUS:TENTATIVE" in text

    def test_export_parses_back(self):
        text = build_calendar("Cottage", [_booking()], "-//PropDesk//Calendar//EN", "propdesk.app")

        events = parse_ical(text)

        assert events[0].uid == "b-1@propdesk.app"
        assert events[0].description == "Booking Reference: BK-LQ3X0F2A-7K2Q\nGuests: 2\nSource: DIRECT"
