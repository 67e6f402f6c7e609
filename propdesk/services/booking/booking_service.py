"""
Booking service: the tenant-checked boundary over availability, pricing
and the booking lifecycle.

Every mutating operation validates input and ownership first, then runs
in one transaction. Domain events go out only after commit.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from propdesk.config.settings import settings
from propdesk.core.exceptions import InvalidDateRangeError, StateConflict, ValidationError
from propdesk.models.base.enums import BookingSource, BookingStatus, PropertyStatus
from propdesk.models.booking.booking import Booking
from propdesk.models.property.property import Property
from propdesk.repositories.booking.booking_repository import BookingRepository
from propdesk.repositories.property.property_repository import PropertyRepository
from propdesk.schemas.booking.booking_base import BookingCreate, BookingRequest, BookingUpdate
from propdesk.schemas.booking.booking_calendar import AvailabilityResult, PriceQuote
from propdesk.schemas.core.domain_events import DomainEventType
from propdesk.services.base.base_service import BaseService
from propdesk.services.base.event_dispatcher import EventDispatcher
from propdesk.services.booking.booking_availability import AvailabilityChecker
from propdesk.services.booking.booking_pricing_service import compute_price
from propdesk.services.booking.booking_state_machine import (
    DATE_EDITABLE_STATUSES,
    validate_transition,
)
from propdesk.utils.date_utils import days_from_today, is_valid_range, now_utc, today_utc
from propdesk.utils.money import ZERO, quantize_money, to_decimal
from propdesk.utils.reference import generate_reference

_INITIAL_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
_REQUIRED_FIELDS = frozenset({"guest_name", "number_of_guests", "check_in_date", "check_out_date"})


class BookingService(BaseService[BookingRepository]):
    """
    High-level booking operations.

    Responsibilities:
    - Ownership checks for properties and bookings
    - Availability check and insert under a property row lock
    - Status transitions and their side effects on the property
    """

    def __init__(
        self,
        db_session: Session,
        dispatcher: Optional[EventDispatcher] = None,
        booking_repository: Optional[BookingRepository] = None,
        property_repository: Optional[PropertyRepository] = None,
    ):
        super().__init__(booking_repository or BookingRepository(db_session), db_session, dispatcher)
        self.properties = property_repository or PropertyRepository(db_session)
        self.availability = AvailabilityChecker(self.repository)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_property(self, organization_id: str, property_id: str, for_update: bool = False) -> Property:
        """Load a property owned by the organization (NotFound / Forbidden otherwise)."""
        prop = self.properties.get_by_id(property_id, for_update=for_update)
        self._ensure_owned(prop, organization_id, owner_field="owner_id")
        return prop

    def get_booking(self, organization_id: str, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        self._ensure_owned(booking, organization_id)
        return booking

    def list_bookings(
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
        if property_id:
            self.get_property(organization_id, property_id)
        return self.repository.search(
            organization_id,
            property_id=property_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            booking_source=booking_source,
            search=search,
            limit=limit,
            offset=offset,
        )

    def upcoming_check_ins(self, organization_id: str, days: Optional[int] = None) -> List[Booking]:
        window = settings.UPCOMING_WINDOW_DAYS if days is None else days
        return self.repository.find_check_ins_between(organization_id, today_utc(), days_from_today(window))

    def upcoming_check_outs(self, organization_id: str, days: Optional[int] = None) -> List[Booking]:
        window = settings.UPCOMING_WINDOW_DAYS if days is None else days
        return self.repository.find_check_outs_between(organization_id, today_utc(), days_from_today(window))

    # -------------------------------------------------------------------------
    # Availability & pricing
    # -------------------------------------------------------------------------

    def check_availability(
        self,
        organization_id: str,
        property_id: str,
        check_in_date: date,
        check_out_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        self._validate_range(check_in_date, check_out_date)
        prop = self.get_property(organization_id, property_id)
        return self.availability.check_availability(
            prop.id, check_in_date, check_out_date, exclude_booking_id=exclude_booking_id
        )

    def quote(self, organization_id: str, property_id: str, check_in_date: date, check_out_date: date) -> PriceQuote:
        self._validate_range(check_in_date, check_out_date)
        return compute_price(self.get_property(organization_id, property_id), check_in_date, check_out_date)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_booking(self, organization_id: str, data: BookingCreate) -> Booking:
        """
        Create a booking entered by staff.

        Args:
            organization_id: Calling organization
            data: Booking payload; total_amount overrides the computed price

        Returns:
            Persisted booking

        Raises:
            ValidationError: invalid range or initial status
            NotFoundError / ForbiddenError: property missing or foreign
            AvailabilityConflict: the range overlaps a blocking booking
        """
        self._validate_range(data.check_in_date, data.check_out_date)
        if data.status not in _INITIAL_STATUSES:
            raise ValidationError(
                "New bookings must start as PENDING or CONFIRMED",
                field="status",
                details={"status": data.status.name},
            )

        with self.transaction():
            prop = self.get_property(organization_id, data.property_id, for_update=True)
            booking = self._insert_booking(
                prop,
                organization_id=organization_id,
                status=data.status,
                source=data.booking_source,
                agreed_total=data.total_amount,
                guest_name=data.guest_name,
                guest_email=data.guest_email,
                guest_phone=data.guest_phone,
                number_of_guests=data.number_of_guests,
                check_in_date=data.check_in_date,
                check_out_date=data.check_out_date,
                booking_type=data.booking_type,
                guest_notes=data.guest_notes,
                internal_notes=data.internal_notes,
            )

        self._logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "property_id": prop.id,
                "organization_id": organization_id,
                "booking_status": booking.status.value,
            },
        )
        self._emit(
            DomainEventType.BOOKING_CREATED,
            booking,
            organization_id,
            booking_reference=booking.booking_reference,
            property_id=booking.property_id,
        )
        return booking

    def create_public_request(self, data: BookingRequest) -> Booking:
        """
        Create a PENDING booking from the public website form.

        The property must be ACTIVE and the stay may not start in the past.
        """
        self._validate_range(data.check_in_date, data.check_out_date)
        if data.check_in_date < today_utc():
            raise ValidationError(
                "Check-in date cannot be in the past",
                field="check_in_date",
                details={"check_in_date": data.check_in_date.isoformat()},
            )

        with self.transaction():
            prop = self.properties.get_by_id(data.property_id, for_update=True)
            if prop.status != PropertyStatus.ACTIVE:
                raise ValidationError(
                    "Property is not available for booking",
                    field="property_id",
                    details={"property_status": prop.status.name},
                )
            booking = self._insert_booking(
                prop,
                organization_id=prop.owner_id,
                status=BookingStatus.PENDING,
                source=BookingSource.WEBSITE,
                agreed_total=None,
                guest_name=data.guest_name,
                guest_email=data.guest_email,
                guest_phone=data.guest_phone,
                number_of_guests=data.number_of_guests,
                check_in_date=data.check_in_date,
                check_out_date=data.check_out_date,
                guest_notes=data.guest_notes,
            )

        self._logger.info(
            "Public booking request received",
            extra={"booking_id": booking.id, "property_id": prop.id, "guest_email": booking.guest_email},
        )
        self._emit(
            DomainEventType.BOOKING_CREATED,
            booking,
            booking.organization_id,
            booking_reference=booking.booking_reference,
            property_id=booking.property_id,
            public_request=True,
        )
        return booking

    def _insert_booking(
        self,
        prop: Property,
        organization_id: str,
        status: BookingStatus,
        source: BookingSource,
        agreed_total: Optional[Decimal],
        **fields,
    ) -> Booking:
        """Availability check, pricing and insert; caller holds the property lock."""
        check_in_date = fields["check_in_date"]
        check_out_date = fields["check_out_date"]
        self.availability.ensure_available(prop.id, check_in_date, check_out_date)

        price = compute_price(prop, check_in_date, check_out_date)
        total = price.total_amount if agreed_total is None else to_decimal(agreed_total)

        booking = Booking(
            booking_reference=generate_reference(settings.BOOKING_REFERENCE_PREFIX),
            organization_id=organization_id,
            property_id=prop.id,
            status=status,
            booking_source=source,
            base_rate=quantize_money(price.base_rate),
            total_amount=quantize_money(total),
            additional_charges=ZERO,
            amount_paid=ZERO,
            **fields,
        )
        return self.repository.create(booking)

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_booking(self, organization_id: str, booking_id: str, data: BookingUpdate) -> Booking:
        """
        Apply a partial update.

        Date changes are allowed while PENDING or CONFIRMED, re-check
        availability excluding the booking itself and reprice direct
        bookings. Imported bookings keep their (zero) amounts.
        """
        changes = {
            field: value
            for field, value in data.changes().items()
            if value is not None or field not in _REQUIRED_FIELDS
        }

        with self.transaction():
            booking = self.get_booking(organization_id, booking_id)
            new_check_in = changes.get("check_in_date") or booking.check_in_date
            new_check_out = changes.get("check_out_date") or booking.check_out_date
            dates_changed = (
                new_check_in != booking.check_in_date or new_check_out != booking.check_out_date
            )

            if dates_changed:
                if booking.status not in DATE_EDITABLE_STATUSES:
                    raise StateConflict(
                        f"Cannot change dates of a booking with status {booking.status.name}",
                        current_status=booking.status.name,
                    )
                self._validate_range(new_check_in, new_check_out)
                prop = self.properties.lock(booking.property_id)
                self.availability.ensure_available(
                    prop.id, new_check_in, new_check_out, exclude_booking_id=booking.id
                )
                if not booking.is_external:
                    self._reprice(booking, prop, new_check_in, new_check_out)

            self.repository.update(booking, changes)

        self._logger.info(
            "Booking updated",
            extra={"booking_id": booking.id, "fields": sorted(changes)},
        )
        self._emit(DomainEventType.BOOKING_UPDATED, booking, organization_id, fields=sorted(changes))
        return booking

    def _reprice(self, booking: Booking, prop: Property, check_in_date: date, check_out_date: date) -> None:
        price = compute_price(prop, check_in_date, check_out_date)
        new_total = quantize_money(price.total_amount) + to_decimal(booking.additional_charges)
        paid = to_decimal(booking.amount_paid)
        if new_total < paid:
            raise ValidationError(
                "New total would be lower than the amount already paid",
                field="check_out_date",
                details={"total_amount": str(new_total), "amount_paid": str(paid)},
            )
        booking.base_rate = quantize_money(price.base_rate)
        booking.total_amount = new_total

    # -------------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------------

    def confirm(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(
            organization_id, booking_id, BookingStatus.CONFIRMED, DomainEventType.BOOKING_CONFIRMED
        )

    def check_in(self, organization_id: str, booking_id: str, notes: Optional[str] = None) -> Booking:
        """Check the guest in and mark the property OCCUPIED."""

        def apply(booking: Booking) -> None:
            booking.checked_in = True
            booking.checked_in_at = now_utc()
            if notes:
                booking.append_internal_note(f"Check-in notes: {notes}")
            booking.rental_property.status = PropertyStatus.OCCUPIED

        return self._transition(
            organization_id, booking_id, BookingStatus.CHECKED_IN, DomainEventType.BOOKING_CHECKED_IN, apply
        )

    def check_out(
        self,
        organization_id: str,
        booking_id: str,
        notes: Optional[str] = None,
        damage_report: Optional[str] = None,
        additional_charges: Optional[Decimal] = None,
    ) -> Booking:
        """
        Check the guest out.

        Additional charges raise the booking total. The property returns to
        ACTIVE only when no other booking on it is still CHECKED_IN.
        """
        charges = quantize_money(additional_charges)
        if charges < ZERO:
            raise ValidationError(
                "Additional charges cannot be negative",
                field="additional_charges",
                details={"additional_charges": str(charges)},
            )

        def apply(booking: Booking) -> None:
            booking.checked_out = True
            booking.checked_out_at = now_utc()

            lines = []
            if notes:
                lines.append(f"Check-out notes: {notes}")
            if damage_report:
                lines.append(f"Damage report: {damage_report}")
            if charges > ZERO:
                lines.append(f"Additional charges: {charges}")
                booking.additional_charges = to_decimal(booking.additional_charges) + charges
                booking.total_amount = to_decimal(booking.total_amount) + charges
            booking.append_internal_note("\n".join(lines))

            prop = booking.rental_property
            if prop.status == PropertyStatus.OCCUPIED and not self.repository.has_other_checked_in(
                prop.id, booking.id
            ):
                prop.status = PropertyStatus.ACTIVE

        return self._transition(
            organization_id, booking_id, BookingStatus.CHECKED_OUT, DomainEventType.BOOKING_CHECKED_OUT, apply
        )

    def cancel(self, organization_id: str, booking_id: str, reason: Optional[str] = None) -> Booking:
        """Cancel a PENDING or CONFIRMED booking; its dates stop blocking."""

        def apply(booking: Booking) -> None:
            booking.cancelled_at = now_utc()
            booking.cancellation_reason = reason

        return self._transition(
            organization_id, booking_id, BookingStatus.CANCELLED, DomainEventType.BOOKING_CANCELLED, apply
        )

    def mark_no_show(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(
            organization_id, booking_id, BookingStatus.NO_SHOW, DomainEventType.BOOKING_NO_SHOW
        )

    def complete(self, organization_id: str, booking_id: str) -> Booking:
        return self._transition(
            organization_id, booking_id, BookingStatus.COMPLETED, DomainEventType.BOOKING_COMPLETED
        )

    def _transition(
        self,
        organization_id: str,
        booking_id: str,
        target: BookingStatus,
        event_type: DomainEventType,
        apply: Optional[Callable[[Booking], None]] = None,
    ) -> Booking:
        with self.transaction():
            booking = self.get_booking(organization_id, booking_id)
            previous = booking.status
            validate_transition(previous, target)
            booking.status = target
            if apply is not None:
                apply(booking)
            self.db.flush()

        self._logger.info(
            "Booking status changed",
            extra={
                "booking_id": booking.id,
                "from_status": previous.value,
                "to_status": target.value,
            },
        )
        self._emit(event_type, booking, organization_id, from_status=previous.value, to_status=target.value)
        return booking

    # -------------------------------------------------------------------------
    # Validation Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_range(check_in_date: date, check_out_date: date) -> None:
        if not is_valid_range(check_in_date, check_out_date):
            raise InvalidDateRangeError(check_in_date, check_out_date)
