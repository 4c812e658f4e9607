"""Task router: repeat-batch listing and per-occurrence state."""
from fastapi import APIRouter, Depends, Query
from typing import Any, Dict, List, Optional

from homeops.config import Settings, get_settings
from homeops.errors import HomeOpsError
from homeops.routers.deps import get_task_service, to_http_error
from homeops.schemas.task import ExpiringBatch, InstanceTimeOverride, TaskListResponse, TaskResponse
from homeops.services.task_service import TaskInstanceService
from homeops.utils.dates import format_date, parse_local_date

router = APIRouter(tags=["Tasks"])


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: Optional[List[str]] = Query(None, description="Filter by status: pending, in_progress, completed"),
    user_id: Optional[str] = Query(None),
    service: TaskInstanceService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
):
    """List tasks with repeat batches collapsed to one row each."""
    tasks = await service.list_tasks(settings.today(), status_filter=status, user_id=user_id)
    return {
        "tasks": [TaskResponse.model_validate(task) for task in tasks],
        "count": len(tasks)
    }


@router.get("/tasks/expiring", response_model=List[ExpiringBatch])
async def list_expiring_batches(
    days: int = Query(30, ge=1, le=366),
    user_id: Optional[str] = Query(None),
    service: TaskInstanceService = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
):
    """Repeat batches that will run out of occurrences soon."""
    return await service.expiring_batches(settings.today(), horizon_days=days, user_id=user_id)


@router.post("/tasks/{task_id}/instances/{instance_date}/complete", response_model=Dict[str, Any])
async def complete_instance(
    task_id: str,
    instance_date: str,
    user_id: Optional[str] = Query(None),
    service: TaskInstanceService = Depends(get_task_service),
):
    try:
        day = parse_local_date(instance_date)
        await service.complete_instance(task_id, day, user_id=user_id)
    except HomeOpsError as e:
        raise to_http_error(e)
    return {"task_id": task_id, "instance_date": format_date(day), "completed": True}


@router.delete("/tasks/{task_id}/instances/{instance_date}/complete", response_model=Dict[str, Any])
async def uncomplete_instance(
    task_id: str,
    instance_date: str,
    service: TaskInstanceService = Depends(get_task_service),
):
    try:
        day = parse_local_date(instance_date)
    except HomeOpsError as e:
        raise to_http_error(e)
    removed = await service.uncomplete_instance(task_id, day)
    return {"task_id": task_id, "instance_date": format_date(day), "completed": False, "removed": removed}


@router.post("/tasks/{task_id}/instances/{instance_date}/skip", response_model=Dict[str, Any])
async def skip_instance(
    task_id: str,
    instance_date: str,
    user_id: Optional[str] = Query(None),
    service: TaskInstanceService = Depends(get_task_service),
):
    try:
        day = parse_local_date(instance_date)
        await service.skip_instance(task_id, day, user_id=user_id)
    except HomeOpsError as e:
        raise to_http_error(e)
    return {"task_id": task_id, "instance_date": format_date(day), "skipped": True}


@router.put("/tasks/{task_id}/instances/{instance_date}/time", response_model=Dict[str, Any])
async def override_instance_time(
    task_id: str,
    instance_date: str,
    body: InstanceTimeOverride,
    user_id: Optional[str] = Query(None),
    service: TaskInstanceService = Depends(get_task_service),
):
    """Move one occurrence of a recurring task to a different time."""
    try:
        day = parse_local_date(instance_date)
        await service.override_instance_time(
            task_id,
            day,
            override_time=body.override_time,
            override_start_time=body.override_start_time,
            override_end_time=body.override_end_time,
            user_id=user_id,
        )
    except HomeOpsError as e:
        raise to_http_error(e)
    return {"task_id": task_id, "instance_date": format_date(day), "has_time_override": True}
