from datetime import date
from decimal import Decimal

import httpx
import pytest

from propdesk.core.exceptions import CalendarFetchError, ForbiddenError, NotFoundError
from propdesk.models.base.enums import BookingSource, BookingStatus
from propdesk.services.booking.booking_calendar_service import EXTERNAL_GUEST_NAME, detect_source
from propdesk.services.integrations.ical_client import ICalClient
from propdesk.services.integrations.ical_parser import parse_ical

from tests.conftest import ORG_ID, OTHER_ORG_ID, ical_feed, vevent

AIRBNB_URL = "https://www.airbnb.com/calendar/ical/123.ics?s=abc"
BOOKING_COM_URL = "https://admin.booking.com/hotel/hoteladmin/ical.html?t=xyz"


class TestImport:
    def test_imports_events_as_confirmed_external_bookings(self, calendar_service, ical_client, booking_service, rental, sink):
        ical_client.feeds[AIRBNB_URL] = ical_feed(
            vevent("abc123@airbnb.com", "20240301", "20240305"),
            vevent("def456@airbnb.com", "20240310", "20240312", summary=None),
        )

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL, BookingSource.AIRBNB)

        assert (result.imported, result.updated, result.errors) == (2, 0, [])
        bookings = booking_service.list_bookings(ORG_ID, property_id=rental.id)
        by_uid = {b.external_id: b for b in bookings}
        first = by_uid["abc123@airbnb.com"]
        assert first.status == BookingStatus.CONFIRMED
        assert first.booking_source == BookingSource.AIRBNB
        assert first.booking_reference.startswith("EXT-AIRBNB-")
        assert first.total_amount == Decimal("0")
        assert first.organization_id == ORG_ID
        assert by_uid["def456@airbnb.com"].guest_name == EXTERNAL_GUEST_NAME
        assert sink.types[-1] == "calendar.synced"
        assert sink.events[-1].payload == {"imported": 2, "updated": 0, "errors": 0}

    def test_reimport_is_idempotent(self, calendar_service, ical_client, booking_service, rental):
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("abc123@airbnb.com", "20240301", "20240305"))

        calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)
        again = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert (again.imported, again.updated, again.errors) == (0, 0, [])
        assert len(booking_service.list_bookings(ORG_ID)) == 1

    def test_shifted_event_updates_existing_booking(self, calendar_service, ical_client, booking_service, rental):
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("abc123@airbnb.com", "20240301", "20240305"))
        calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("abc123@airbnb.com", "20240302", "20240306"))
        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert (result.imported, result.updated) == (0, 1)
        [booking] = booking_service.list_bookings(ORG_ID)
        assert (booking.check_in_date, booking.check_out_date) == (date(2024, 3, 2), date(2024, 3, 6))

    def test_conflicting_event_is_reported_not_imported(self, calendar_service, ical_client, make_booking, booking_service, rental):
        direct = make_booking(date(2024, 3, 3), date(2024, 3, 6))
        ical_client.feeds[AIRBNB_URL] = ical_feed(
            vevent("clash@airbnb.com", "20240301", "20240305"),
            vevent("free@airbnb.com", "20240310", "20240312"),
        )

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert result.imported == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to sync event clash@airbnb.com:")
        assert booking_service.get_booking(ORG_ID, direct.id).status == BookingStatus.CONFIRMED
        assert {b.external_id for b in booking_service.list_bookings(ORG_ID)} == {None, "free@airbnb.com"}

    def test_inverted_event_is_reported(self, calendar_service, ical_client, rental):
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("backwards", "20240305", "20240301"))

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert result.imported == 0
        assert result.errors == [
            "Failed to sync event backwards: Check-out date must be after check-in date"
        ]

    def test_another_property_export_is_imported(self, calendar_service, ical_client, make_booking, make_property, rental):
        make_booking(date(2024, 3, 1), date(2024, 3, 4))
        annex = make_property(name="Garden Annex")
        ical_client.feeds["https://cal.example.org/cottage.ics"] = calendar_service.generate_property_calendar(
            ORG_ID, rental.id
        )

        result = calendar_service.sync_external_calendar(ORG_ID, annex.id, "https://cal.example.org/cottage.ics")

        assert (result.imported, result.errors) == (1, [])
        assert [b.property_id for b in calendar_service.repository.find_blocking_for_property(annex.id)] == [annex.id]

    def test_uid_on_our_domain_without_matching_booking_is_imported(self, calendar_service, ical_client, rental):
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("b-1@propdesk.app", "20240301", "20240305"))

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert (result.imported, result.errors) == (1, [])

    def test_fetch_failure_becomes_result_error(self, calendar_service, rental, sink):
        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert result.imported == 0
        assert result.errors == ["Failed to fetch calendar: unexpected status 404"]
        assert sink.events[-1].payload["errors"] == 1

    def test_unparseable_feed_becomes_result_error(self, calendar_service, ical_client, rental):
        ical_client.feeds[AIRBNB_URL] = "<html>Sign in</html>"

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        assert result.errors == ["Failed to parse calendar: Not an iCalendar document"]

    def test_url_is_remembered_once(self, calendar_service, ical_client, booking_service, rental):
        ical_client.feeds[AIRBNB_URL] = ical_feed()

        calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)
        calendar_service.sync_external_calendar(ORG_ID, rental.id, AIRBNB_URL)

        prop = booking_service.get_property(ORG_ID, rental.id)
        assert prop.calendar_urls == [AIRBNB_URL]
        assert prop.sync_calendar is True

    def test_foreign_property_is_forbidden(self, calendar_service, make_property, ical_client):
        foreign = make_property(owner_id=OTHER_ORG_ID, name="Elsewhere")

        with pytest.raises(ForbiddenError):
            calendar_service.sync_external_calendar(ORG_ID, foreign.id, AIRBNB_URL)
        with pytest.raises(NotFoundError):
            calendar_service.sync_external_calendar(ORG_ID, "missing", AIRBNB_URL)

        assert ical_client.calls == []


class TestBatchSync:
    def test_property_sync_merges_feeds(self, calendar_service, ical_client, make_property):
        prop = make_property(calendar_urls=[AIRBNB_URL, BOOKING_COM_URL], sync_calendar=True)
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("a1@airbnb.com", "20240301", "20240303"))

        result = calendar_service.sync_property_calendars(ORG_ID, prop.id)

        assert result.imported == 1
        assert result.errors == [f"{BOOKING_COM_URL}: Failed to fetch calendar: unexpected status 404"]

    def test_sources_are_detected_per_feed(self, calendar_service, ical_client, make_property, booking_service):
        prop = make_property(calendar_urls=[AIRBNB_URL, BOOKING_COM_URL], sync_calendar=True)
        ical_client.feeds[AIRBNB_URL] = ical_feed(vevent("a1@airbnb.com", "20240301", "20240303"))
        ical_client.feeds[BOOKING_COM_URL] = ical_feed(vevent("b1@booking.com", "20240305", "20240307"))

        calendar_service.sync_property_calendars(ORG_ID, prop.id)

        sources = {b.external_id: b.booking_source for b in booking_service.list_bookings(ORG_ID)}
        assert sources == {"a1@airbnb.com": BookingSource.AIRBNB, "b1@booking.com": BookingSource.BOOKING_COM}

    def test_sync_all_isolates_failures(self, calendar_service, ical_client, make_property):
        good = make_property(name="Good", calendar_urls=["https://cal.example.org/good.ics"], sync_calendar=True)
        bad = make_property(name="Bad", calendar_urls=["https://cal.example.org/bad.ics"], sync_calendar=True)
        make_property(name="Off", calendar_urls=["https://cal.example.org/off.ics"], sync_calendar=False)
        make_property(owner_id=OTHER_ORG_ID, name="Theirs", calendar_urls=["https://cal.example.org/x.ics"], sync_calendar=True)
        ical_client.feeds["https://cal.example.org/good.ics"] = ical_feed(vevent("g1", "20240301", "20240302"))
        ical_client.feeds["https://cal.example.org/bad.ics"] = CalendarFetchError(
            "https://cal.example.org/bad.ics", "timed out after 15.0s"
        )

        results = calendar_service.sync_all_calendars(ORG_ID)

        assert set(results) == {good.id, bad.id}
        assert results[good.id].imported == 1
        assert results[bad.id].errors == [
            "https://cal.example.org/bad.ics: Failed to fetch calendar: timed out after 15.0s"
        ]
        assert "https://cal.example.org/off.ics" not in ical_client.calls
        assert "https://cal.example.org/x.ics" not in ical_client.calls

    @pytest.mark.parametrize(
        "url, source",
        [
            (AIRBNB_URL, BookingSource.AIRBNB),
            (BOOKING_COM_URL, BookingSource.BOOKING_COM),
            ("https://calendar.vrbo.com/123.ics", BookingSource.OTHER),
        ],
    )
    def test_detect_source(self, url, source):
        assert detect_source(url) == source


class TestExport:
    def test_export_lists_blocking_bookings_in_order(self, calendar_service, make_booking, booking_service, rental):
        later = make_booking(date(2024, 3, 10), date(2024, 3, 12), guest_name="Later Guest")
        earlier = make_booking(date(2024, 3, 1), date(2024, 3, 4), status=BookingStatus.PENDING)
        cancelled = make_booking(date(2024, 3, 20), date(2024, 3, 22), guest_name="Gone Guest")
        booking_service.cancel(ORG_ID, cancelled.id)

        text = calendar_service.generate_property_calendar(ORG_ID, rental.id)

        events = parse_ical(text)
        assert [e.uid for e in events] == [f"{earlier.id}@propdesk.app", f"{later.id}@propdesk.app"]
        assert "STATUS:TENTATIVE" in text
        assert "Gone Guest" not in text
        assert text.endswith("END:VCALENDAR\r\n")
        assert "X-WR-CALNAME:Sea View Cottage" in text

    def test_export_document(self, calendar_service, rental):
        document = calendar_service.export_calendar(ORG_ID, rental.id)

        assert document.filename == f"property-{rental.id}.ics"
        assert document.media_type == "text/calendar; charset=utf-8"
        assert document.content.startswith("BEGIN:VCALENDAR\r\n")

    def test_export_is_tenant_checked(self, calendar_service, rental):
        with pytest.raises(ForbiddenError):
            calendar_service.export_calendar(OTHER_ORG_ID, rental.id)

    def test_exported_feed_does_not_reimport_itself(self, calendar_service, ical_client, make_booking, rental):
        make_booking(date(2024, 3, 1), date(2024, 3, 4))
        ical_client.feeds["https://cal.example.org/self.ics"] = calendar_service.generate_property_calendar(
            ORG_ID, rental.id
        )

        result = calendar_service.sync_external_calendar(ORG_ID, rental.id, "https://cal.example.org/self.ics")

        assert (result.imported, result.updated, result.errors) == (0, 0, [])


class TestICalClient:
    def test_returns_body_on_success(self):
        def handler(request):
            assert request.url == httpx.URL(AIRBNB_URL)
            return httpx.Response(200, text="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

        client = ICalClient(transport=httpx.MockTransport(handler))

        assert client.fetch(AIRBNB_URL).startswith("BEGIN:VCALENDAR")

    def test_non_200_raises(self):
        client = ICalClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))

        with pytest.raises(CalendarFetchError) as exc_info:
            client.fetch(AIRBNB_URL)

        assert exc_info.value.message == "Failed to fetch calendar: unexpected status 503"
        assert exc_info.value.details["url"] == AIRBNB_URL

    def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        client = ICalClient(timeout=2.0, transport=httpx.MockTransport(handler))

        with pytest.raises(CalendarFetchError) as exc_info:
            client.fetch(AIRBNB_URL)

        assert exc_info.value.message == "Failed to fetch calendar: timed out after 2.0s"

    def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = ICalClient(transport=httpx.MockTransport(handler))

        with pytest.raises(CalendarFetchError):
            client.fetch(AIRBNB_URL)
