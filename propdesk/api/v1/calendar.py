"""External calendar endpoints."""

from typing import Dict

from fastapi import APIRouter, Depends, Query, Response

from propdesk.api import deps
from propdesk.schemas.booking.booking_calendar import CalendarSyncRequest, SyncResult
from propdesk.services.booking.booking_calendar_service import CalendarSyncService

router = APIRouter()


@router.post("/sync", response_model=SyncResult)
def sync_calendar(
    payload: CalendarSyncRequest,
    organization_id: str = Depends(deps.get_organization_id),
    service: CalendarSyncService = Depends(deps.get_calendar_service),
):
    return service.sync_external_calendar(
        organization_id,
        payload.property_id,
        str(payload.calendar_url),
        payload.source,
    )


@router.put("/sync", response_model=SyncResult)
def sync_property_calendars(
    property_id: str = Query(...),
    organization_id: str = Depends(deps.get_organization_id),
    service: CalendarSyncService = Depends(deps.get_calendar_service),
):
    return service.sync_property_calendars(organization_id, property_id)


@router.post("/sync-all", response_model=Dict[str, SyncResult])
def sync_all_calendars(
    organization_id: str = Depends(deps.get_organization_id),
    service: CalendarSyncService = Depends(deps.get_calendar_service),
):
    return service.sync_all_calendars(organization_id)


@router.get("/export")
def export_calendar(
    property_id: str = Query(...),
    organization_id: str = Depends(deps.get_organization_id),
    service: CalendarSyncService = Depends(deps.get_calendar_service),
):
    document = service.export_calendar(organization_id, property_id)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )
