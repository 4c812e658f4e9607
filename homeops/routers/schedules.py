"""Schedule override router."""
from fastapi import APIRouter, Depends, status
from typing import Any, Dict

from homeops.errors import HomeOpsError
from homeops.routers.deps import get_schedule_service, to_http_error
from homeops.schemas.schedule import ScheduleOverrideRequest, ScheduleOverrideResponse
from homeops.services.schedule_service import ScheduleOverrideService
from homeops.utils.dates import format_date, parse_local_date

router = APIRouter(tags=["Schedules"])


@router.put("/schedules/{schedule_id}/overrides/{override_date}", response_model=ScheduleOverrideResponse)
async def put_schedule_override(
    schedule_id: str,
    override_date: str,
    body: ScheduleOverrideRequest,
    service: ScheduleOverrideService = Depends(get_schedule_service),
):
    """Create or replace the override for one shift date."""
    try:
        return await service.upsert_override(
            schedule_id,
            parse_local_date(override_date),
            start_time=body.start_time,
            end_time=body.end_time,
            is_cancelled=body.is_cancelled,
            notes=body.notes,
        )
    except HomeOpsError as e:
        raise to_http_error(e)


@router.delete(
    "/schedules/{schedule_id}/overrides/{override_date}",
    response_model=Dict[str, Any],
    status_code=status.HTTP_200_OK,
)
async def delete_schedule_override(
    schedule_id: str,
    override_date: str,
    service: ScheduleOverrideService = Depends(get_schedule_service),
):
    """Remove an override. Deleting a missing override succeeds with ``deleted: false``."""
    try:
        day = parse_local_date(override_date)
    except HomeOpsError as e:
        raise to_http_error(e)

    deleted = await service.delete_override(schedule_id, day)
    return {"schedule_id": schedule_id, "override_date": format_date(day), "deleted": deleted}
