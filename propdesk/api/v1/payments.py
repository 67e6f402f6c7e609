"""Payment endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from propdesk.api import deps
from propdesk.schemas.booking.booking_response import BookingResponse
from propdesk.schemas.payment.payment_base import (
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    RefundRequest,
)
from propdesk.services.payment.payment_service import PaymentService

router = APIRouter()


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payload: PaymentCreate,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.record_payment(organization_id, payload)


@router.get("/booking/{booking_id}", response_model=List[PaymentResponse])
def list_booking_payments(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.list_for_booking(organization_id, booking_id)


@router.post("/booking/{booking_id}/reconcile", response_model=BookingResponse)
def reconcile_booking(
    booking_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.reconcile_booking(organization_id, booking_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.get_payment(organization_id, payment_id)


@router.patch("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.update_payment(organization_id, payment_id, payload)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: str,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    service.delete_payment(organization_id, payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
def refund_payment(
    payment_id: str,
    payload: RefundRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.refund_payment(organization_id, payment_id, reason=payload.reason)


@router.post("/{payment_id}/fail", response_model=PaymentResponse)
def mark_payment_failed(
    payment_id: str,
    payload: RefundRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return service.mark_failed(organization_id, payment_id, reason=payload.reason)
