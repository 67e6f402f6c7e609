"""
External calendar synchronisation for bookings.

Import:
- Upserts bookings keyed by (property_id, external_id)
- Never overlaps an internal booking; conflicts are reported per event
- One failing event or feed never aborts the rest

Export:
- VCALENDAR of a property's blocking bookings
"""

from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from propdesk.config.settings import settings
from propdesk.core.exceptions import BaseAppException, CalendarFetchError, InvalidDateRangeError
from propdesk.models.base.enums import BookingSource, BookingStatus
from propdesk.models.booking.booking import Booking
from propdesk.models.property.property import Property
from propdesk.repositories.booking.booking_repository import BookingRepository
from propdesk.repositories.property.property_repository import PropertyRepository
from propdesk.schemas.booking.booking_calendar import CalendarDocument, CalendarEvent, SyncResult
from propdesk.schemas.core.domain_events import DomainEventType
from propdesk.services.base.base_service import BaseService
from propdesk.services.base.event_dispatcher import EventDispatcher
from propdesk.services.booking.booking_availability import AvailabilityChecker
from propdesk.services.integrations.ical_client import ICalClient
from propdesk.services.integrations.ical_parser import parse_ical
from propdesk.services.integrations.ical_writer import build_calendar
from propdesk.utils.money import ZERO
from propdesk.utils.reference import external_booking_reference

EXTERNAL_GUEST_NAME = "External Booking"

_IMPORTED = "imported"
_UPDATED = "updated"


def detect_source(url: str) -> BookingSource:
    """Guess the booking channel from a feed URL."""
    lowered = url.lower()
    if "airbnb" in lowered:
        return BookingSource.AIRBNB
    if "booking.com" in lowered:
        return BookingSource.BOOKING_COM
    return BookingSource.OTHER


class CalendarSyncService(BaseService[BookingRepository]):
    """
    iCal import and export for properties.
    """

    def __init__(
        self,
        db_session: Session,
        dispatcher: Optional[EventDispatcher] = None,
        ical_client: Optional[ICalClient] = None,
        booking_repository: Optional[BookingRepository] = None,
        property_repository: Optional[PropertyRepository] = None,
    ):
        super().__init__(booking_repository or BookingRepository(db_session), db_session, dispatcher)
        self.properties = property_repository or PropertyRepository(db_session)
        self.availability = AvailabilityChecker(self.repository)
        self.client = ical_client or ICalClient()

    def _get_property(self, organization_id: str, property_id: str) -> Property:
        prop = self.properties.get_by_id(property_id)
        self._ensure_owned(prop, organization_id, owner_field="owner_id")
        return prop

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def sync_external_calendar(
        self,
        organization_id: str,
        property_id: str,
        calendar_url: str,
        source: BookingSource = BookingSource.OTHER,
    ) -> SyncResult:
        """
        Import one feed into a property's bookings.

        The URL is remembered on the property so later batch syncs pick it up.

        Args:
            organization_id: Calling organization
            property_id: Target property
            calendar_url: Feed URL
            source: Channel recorded on imported bookings

        Returns:
            SyncResult with imported/updated counts and per-event errors

        Raises:
            NotFoundError / ForbiddenError: property missing or foreign
        """
        prop = self._get_property(organization_id, property_id)

        if calendar_url not in (prop.calendar_urls or []):
            with self.transaction():
                if prop.calendar_urls is None:
                    prop.calendar_urls = []
                prop.calendar_urls.append(calendar_url)
                prop.sync_calendar = True

        result = self._import_feed(prop.id, calendar_url, source)
        self._after_sync(organization_id, prop.id, result, urls=[calendar_url])
        return result

    def sync_property_calendars(self, organization_id: str, property_id: str) -> SyncResult:
        """Sync every feed stored on a property, each URL independently."""
        prop = self._get_property(organization_id, property_id)
        urls = list(prop.calendar_urls or [])

        total = SyncResult()
        for url in urls:
            result = self._import_feed(prop.id, url, detect_source(url))
            total = total.merge(
                SyncResult(
                    imported=result.imported,
                    updated=result.updated,
                    errors=[f"{url}: {error}" for error in result.errors],
                )
            )

        self._after_sync(organization_id, prop.id, total, urls=urls)
        return total

    def sync_all_calendars(self, organization_id: str) -> Dict[str, SyncResult]:
        """
        Sync every property of the organization that has sync enabled.

        A failure on one property is recorded in its result and the batch continues.
        """
        results: Dict[str, SyncResult] = {}
        for prop in self.properties.find_syncable(organization_id):
            property_id = prop.id
            try:
                results[property_id] = self.sync_property_calendars(organization_id, property_id)
            except (BaseAppException, SQLAlchemyError) as e:
                self._logger.warning(
                    "Property calendar sync failed",
                    extra={"property_id": property_id, "error": str(e)},
                )
                results[property_id] = SyncResult(errors=[f"Property sync failed: {e}"])
        return results

    def _import_feed(self, property_id: str, url: str, source: BookingSource) -> SyncResult:
        try:
            text = self.client.fetch(url)
        except CalendarFetchError as e:
            return SyncResult(errors=[e.message])

        parse_errors: List[str] = []
        try:
            events = parse_ical(text, errors=parse_errors)
        except ValueError as e:
            return SyncResult(errors=[f"Failed to parse calendar: {e}"])

        result = SyncResult(errors=parse_errors)

        for event in events:
            if self._is_own_export(property_id, event.uid):
                continue
            try:
                with self.transaction():
                    outcome = self._upsert_event(property_id, event, source)
            except (BaseAppException, SQLAlchemyError) as e:
                message = getattr(e, "message", None) or str(e)
                result.errors.append(f"Failed to sync event {event.uid}: {message}")
                continue

            if outcome == _IMPORTED:
                result.imported += 1
            elif outcome == _UPDATED:
                result.updated += 1

        return result

    def _is_own_export(self, property_id: str, uid: str) -> bool:
        """True when the event is this property's own exported booking fed back in."""
        suffix = f"@{settings.CALENDAR_UID_DOMAIN}"
        if not uid.endswith(suffix):
            return False
        booking = self.repository.find_by_id(uid[: -len(suffix)])
        return booking is not None and booking.property_id == property_id

    def _upsert_event(self, property_id: str, event: CalendarEvent, source: BookingSource) -> Optional[str]:
        """
        Create or update the booking mirroring one external event.

        Returns:
            "imported", "updated" or None when nothing changed
        """
        if event.end <= event.start:
            raise InvalidDateRangeError(event.start, event.end)

        prop = self.properties.lock(property_id)
        guest_name = event.summary or EXTERNAL_GUEST_NAME
        existing = self.repository.find_by_external_id(prop.id, event.uid)

        if existing is not None:
            unchanged = (
                existing.check_in_date == event.start
                and existing.check_out_date == event.end
                and existing.guest_name == guest_name
            )
            if unchanged:
                return None

            dates_changed = existing.check_in_date != event.start or existing.check_out_date != event.end
            if dates_changed and existing.is_blocking:
                self.availability.ensure_available(
                    prop.id, event.start, event.end, exclude_booking_id=existing.id
                )
            existing.check_in_date = event.start
            existing.check_out_date = event.end
            existing.guest_name = guest_name
            self.db.flush()
            return _UPDATED

        self.availability.ensure_available(prop.id, event.start, event.end)
        booking = Booking(
            booking_reference=external_booking_reference(source.name),
            organization_id=prop.owner_id,
            property_id=prop.id,
            guest_name=guest_name,
            check_in_date=event.start,
            check_out_date=event.end,
            status=BookingStatus.CONFIRMED,
            booking_source=source,
            external_id=event.uid,
            base_rate=ZERO,
            total_amount=ZERO,
            additional_charges=ZERO,
            amount_paid=ZERO,
            internal_notes=f"Imported from {source.name} calendar",
        )
        self.repository.create(booking)
        return _IMPORTED

    def _after_sync(self, organization_id: str, property_id: str, result: SyncResult, urls: List[str]) -> None:
        log = self._logger.warning if result.errors else self._logger.info
        log(
            "Calendar sync finished",
            extra={
                "property_id": property_id,
                "imported": result.imported,
                "updated": result.updated,
                "error_count": len(result.errors),
                "feed_count": len(urls),
            },
        )
        prop = self.properties.get_by_id(property_id)
        self._emit(
            DomainEventType.CALENDAR_SYNCED,
            prop,
            organization_id,
            imported=result.imported,
            updated=result.updated,
            errors=len(result.errors),
        )

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def generate_property_calendar(self, organization_id: str, property_id: str) -> str:
        """iCal text with one VEVENT per blocking booking, ordered by check-in."""
        prop = self._get_property(organization_id, property_id)
        bookings = self.repository.find_blocking_for_property(prop.id)
        return build_calendar(
            calendar_name=prop.name,
            bookings=bookings,
            prodid=settings.CALENDAR_PRODID,
            uid_domain=settings.CALENDAR_UID_DOMAIN,
        )

    def export_calendar(self, organization_id: str, property_id: str) -> CalendarDocument:
        content = self.generate_property_calendar(organization_id, property_id)
        return CalendarDocument(
            content=content,
            filename=f"property-{property_id}.ics",
            media_type="text/calendar; charset=utf-8",
        )
