"""
API v1 Router - aggregates all v1 endpoints.
"""
from fastapi import APIRouter

from propdesk.api.v1 import bookings, calendar, payments

router = APIRouter(
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"}
    }
)

router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
