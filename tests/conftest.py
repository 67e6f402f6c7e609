"""Shared test configuration and fixtures.

Key principles:
- One in-memory SQLite database per test (StaticPool keeps a single connection).
- Services get an explicit session and a recording event sink.
- External feeds are served from memory; no network access.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Union

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propdesk.core.exceptions import CalendarFetchError
from propdesk.db.base import Base
from propdesk.models.base.enums import BookingSource, BookingStatus, PropertyStatus, RentalType
from propdesk.models.booking.booking import Booking
from propdesk.models.property.property import Property
from propdesk.schemas.booking.booking_base import BookingCreate
from propdesk.schemas.core.domain_events import DomainEvent
from propdesk.services.base.event_dispatcher import EventDispatcher
from propdesk.services.booking.booking_calendar_service import CalendarSyncService
from propdesk.services.booking.booking_service import BookingService
from propdesk.services.payment.payment_service import PaymentService

ORG_ID = "org-landlord-1"
OTHER_ORG_ID = "org-landlord-2"


class RecordingSink:
    def __init__(self):
        self.events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> List[str]:
        return [event.event_type.value for event in self.events]


class FailingSink:
    def publish(self, event: DomainEvent) -> None:
        raise RuntimeError("notification service unavailable")


class StubICalClient:
    """Serves feed bodies by URL; an Exception value is raised instead."""

    def __init__(self, feeds: Optional[Dict[str, Union[str, Exception]]] = None):
        self.feeds: Dict[str, Union[str, Exception]] = dict(feeds or {})
        self.calls: List[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        value = self.feeds.get(url)
        if value is None:
            raise CalendarFetchError(url, "unexpected status 404")
        if isinstance(value, Exception):
            raise value
        return value


def ical_feed(*events: str) -> str:
    """Wrap VEVENT bodies in a VCALENDAR."""
    body = "".join(f"BEGIN:VEVENT\r\n{event.strip()}\r\nEND:VEVENT\r\n" for event in events)
    return f"BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Airbnb Inc//Hosting Calendar//EN\r\n{body}END:VCALENDAR\r\n"


def vevent(uid: str, start: str, end: str, summary: Optional[str] = "Reserved") -> str:
    lines = [f"UID:{uid}", f"DTSTART;VALUE=DATE:{start}", f"DTEND;VALUE=DATE:{end}"]
    if summary is not None:
        lines.append(f"SUMMARY:{summary}")
    return "\r\n".join(lines)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(sink) -> EventDispatcher:
    return EventDispatcher(sink)


@pytest.fixture
def make_property(db) -> Callable[..., Property]:
    def _make(
        owner_id: str = ORG_ID,
        name: str = "Sea View Cottage",
        daily_rate: Optional[Decimal] = Decimal("800"),
        monthly_rent: Optional[Decimal] = None,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        calendar_urls: Optional[List[str]] = None,
        sync_calendar: bool = False,
    ) -> Property:
        prop = Property(
            owner_id=owner_id,
            name=name,
            rental_type=RentalType.SHORT_TERM,
            daily_rate=daily_rate,
            monthly_rent=monthly_rent,
            status=status,
            calendar_urls=list(calendar_urls or []),
            sync_calendar=sync_calendar,
        )
        db.add(prop)
        db.commit()
        return prop

    return _make


@pytest.fixture
def rental(make_property) -> Property:
    return make_property()


@pytest.fixture
def booking_service(db, dispatcher) -> BookingService:
    return BookingService(db, dispatcher)


@pytest.fixture
def payment_service(db, dispatcher) -> PaymentService:
    return PaymentService(db, dispatcher)


@pytest.fixture
def ical_client() -> StubICalClient:
    return StubICalClient()


@pytest.fixture
def calendar_service(db, dispatcher, ical_client) -> CalendarSyncService:
    return CalendarSyncService(db, dispatcher, ical_client=ical_client)


@pytest.fixture
def make_booking(booking_service, rental) -> Callable[..., Booking]:
    def _make(
        check_in: date,
        check_out: date,
        status: BookingStatus = BookingStatus.CONFIRMED,
        property_id: Optional[str] = None,
        guest_name: str = "Jane Doe",
        total_amount: Optional[Decimal] = None,
        organization_id: str = ORG_ID,
        source: BookingSource = BookingSource.DIRECT,
    ) -> Booking:
        payload = BookingCreate(
            property_id=property_id or rental.id,
            guest_name=guest_name,
            guest_email="jane.doe@propmail.co.za",
            check_in_date=check_in,
            check_out_date=check_out,
            status=status,
            booking_source=source,
            total_amount=total_amount,
        )
        return booking_service.create_booking(organization_id, payload)

    return _make
