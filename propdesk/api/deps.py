"""
FastAPI dependencies.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from propdesk.api import deps

    @router.get("/bookings")
    def list_bookings(service = Depends(deps.get_booking_service)):
        ...
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from propdesk.core.logging import organization_id as organization_id_ctx
from propdesk.db.session import get_db
from propdesk.services.base.event_dispatcher import EventDispatcher
from propdesk.services.booking.booking_calendar_service import CalendarSyncService
from propdesk.services.booking.booking_service import BookingService
from propdesk.services.integrations.ical_client import ICalClient
from propdesk.services.payment.payment_service import PaymentService

# --- Database & context --------------------------------------------------------

_dispatcher = EventDispatcher()


def get_organization_id(x_organization_id: str = Header(..., alias="X-Organization-Id")) -> str:
    """Calling organization; authentication upstream sets this header."""
    organization_id_ctx.set(x_organization_id)
    return x_organization_id


def get_event_dispatcher() -> EventDispatcher:
    return _dispatcher


def get_ical_client() -> ICalClient:
    return ICalClient()


# --- Services ------------------------------------------------------------------

def get_booking_service(
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> BookingService:
    return BookingService(db, dispatcher)


def get_payment_service(
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> PaymentService:
    return PaymentService(db, dispatcher)


def get_calendar_service(
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    client: ICalClient = Depends(get_ical_client),
) -> CalendarSyncService:
    return CalendarSyncService(db, dispatcher, ical_client=client)
