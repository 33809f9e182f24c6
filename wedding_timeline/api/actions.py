"""
Action dispatch endpoint - one POST that routes ``{"action": ...}`` payloads
to the timeline operations. Results are wrapped as ``{"data": ...}``.
"""
from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_timeline.database import get_db
from wedding_timeline.errors import UnknownAction, ValidationFailed
from wedding_timeline.schemas import (
    ActionRequest, TaskCreate, TaskFilters, TaskResponse, TaskUpdate,
)
from wedding_timeline.services.critical_path import estimate_critical_path
from wedding_timeline.services.task_service import TaskService
from wedding_timeline.services.timeline_health import build_progress_report
from wedding_timeline.services.timeline_view import build_timeline_view, calculate_task_analytics

router = APIRouter()

Handler = Callable[[TaskService, ActionRequest], Awaitable[Any]]


def _require(request: ActionRequest, field: str) -> Any:
    value = getattr(request, field)
    if value is None:
        raise ValidationFailed(f"'{field}' is required for action '{request.action}'")
    return value


async def _create_task(service: TaskService, request: ActionRequest):
    data = TaskCreate.model_validate(_require(request, "task_data"))
    return TaskResponse.model_validate(await service.create_task(data))


async def _get_tasks(service: TaskService, request: ActionRequest):
    filters = TaskFilters.model_validate(request.filters or {})
    return await service.list_tasks(
        wedding_id=request.wedding_id,
        member_id=request.member_id,
        **filters.model_dump(),
    )


async def _update_task(service: TaskService, request: ActionRequest):
    data = TaskUpdate.model_validate(_require(request, "task_data"))
    task, changes = await service.update_task(_require(request, "task_id"), data)
    return {"task": TaskResponse.model_validate(task), "status_changes": changes}


async def _complete_task(service: TaskService, request: ActionRequest):
    task_data = request.task_data or {}
    completion_data = task_data.get("completion_data") or {}
    if not isinstance(completion_data, dict):
        raise ValidationFailed("'task_data.completion_data' must be an object")
    notes = task_data.get("completion_notes") or completion_data.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationFailed("Completion notes must be a string")
    return await service.complete_task(_require(request, "task_id"), notes=notes)


async def _get_timeline(service: TaskService, request: ActionRequest):
    wedding_id = _require(request, "wedding_id")
    await service.get_wedding(wedding_id)
    return build_timeline_view(await service.store.for_wedding(wedding_id), wedding_id=wedding_id)


async def _get_critical_path(service: TaskService, request: ActionRequest):
    wedding_id = _require(request, "wedding_id")
    await service.get_wedding(wedding_id)
    return estimate_critical_path(await service.store.for_wedding(wedding_id))


async def _send_reminders(service: TaskService, request: ActionRequest):
    return await service.send_reminders(_require(request, "wedding_id"))


async def _get_task_analytics(service: TaskService, request: ActionRequest):
    wedding_id = _require(request, "wedding_id")
    await service.get_wedding(wedding_id)
    return calculate_task_analytics(await service.store.for_wedding(wedding_id))


async def _bulk_create_tasks(service: TaskService, request: ActionRequest):
    task_data = _require(request, "task_data")
    items = task_data.get("tasks")
    if not isinstance(items, list):
        raise ValidationFailed("'task_data.tasks' must be a list of tasks")
    return await service.bulk_create(items, wedding_id=request.wedding_id)


async def _generate_progress_report(service: TaskService, request: ActionRequest):
    wedding_id = _require(request, "wedding_id")
    wedding = await service.get_wedding(wedding_id)
    return build_progress_report(
        wedding,
        await service.list_members(wedding_id),
        await service.store.for_wedding(wedding_id),
    )


ACTIONS: Dict[str, Handler] = {
    "create_task": _create_task,
    "get_tasks": _get_tasks,
    "update_task": _update_task,
    "complete_task": _complete_task,
    "get_timeline": _get_timeline,
    "get_critical_path": _get_critical_path,
    "send_reminders": _send_reminders,
    "get_task_analytics": _get_task_analytics,
    "bulk_create_tasks": _bulk_create_tasks,
    "generate_progress_report": _generate_progress_report,
}


@router.post("/actions")
async def dispatch_action(request: ActionRequest, db: AsyncSession = Depends(get_db)):
    handler = ACTIONS.get(request.action)
    if not handler:
        raise UnknownAction(f"Unknown action: {request.action}. Available: {list(ACTIONS.keys())}")

    result = await handler(TaskService(db), request)
    return {"data": _dump(result)}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value
