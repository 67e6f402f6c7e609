"""Booking endpoints."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from propdesk.api import deps
from propdesk.models.base.enums import BookingSource, BookingStatus
from propdesk.schemas.booking.booking_base import (
    AvailabilityQuery,
    BookingCreate,
    BookingRequest,
    BookingUpdate,
    CancelRequest,
    CheckInRequest,
    CheckOutRequest,
)
from propdesk.schemas.booking.booking_calendar import AvailabilityResult, PriceQuote
from propdesk.schemas.booking.booking_response import BookingResponse
from propdesk.services.booking.booking_service import BookingService

router = APIRouter()


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.create_booking(organization_id, payload)


@router.post("/public", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    payload: BookingRequest,
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.create_public_request(payload)


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    property_id: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    booking_source: Optional[BookingSource] = Query(None, alias="source"),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.list_bookings(
        organization_id,
        property_id=property_id,
        status=booking_status,
        start_date=start_date,
        end_date=end_date,
        booking_source=booking_source,
        search=search,
        limit=limit,
        offset=offset,
    )


@router.get("/upcoming/check-ins", response_model=List[BookingResponse])
def upcoming_check_ins(
    days: Optional[int] = Query(None, ge=0, le=365),
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.upcoming_check_ins(organization_id, days)


@router.get("/upcoming/check-outs", response_model=List[BookingResponse])
def upcoming_check_outs(
    days: Optional[int] = Query(None, ge=0, le=365),
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.upcoming_check_outs(organization_id, days)


@router.post("/availability", response_model=AvailabilityResult)
def check_availability(
    payload: AvailabilityQuery,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.check_availability(
        organization_id,
        payload.property_id,
        payload.check_in_date,
        payload.check_out_date,
        exclude_booking_id=payload.exclude_booking_id,
    )


@router.post("/quote", response_model=PriceQuote)
def quote(
    payload: AvailabilityQuery,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.quote(organization_id, payload.property_id, payload.check_in_date, payload.check_out_date)


@router.post("/check-in", response_model=BookingResponse)
def check_in(
    payload: CheckInRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.check_in(organization_id, payload.booking_id, notes=payload.notes)


@router.post("/check-out", response_model=BookingResponse)
def check_out(
    payload: CheckOutRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.check_out(
        organization_id,
        payload.booking_id,
        notes=payload.notes,
        damage_report=payload.damage_report,
        additional_charges=payload.additional_charges,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.get_booking(organization_id, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.update_booking(organization_id, booking_id, payload)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.confirm(organization_id, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: CancelRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.cancel(organization_id, booking_id, reason=payload.reason)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.mark_no_show(organization_id, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.complete(organization_id, booking_id)
