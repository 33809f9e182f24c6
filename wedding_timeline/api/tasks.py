"""
Task API endpoints - CRUD plus start/complete transitions
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from wedding_timeline.database import get_db
from wedding_timeline.models.task import TaskStatus, TaskCategory, TaskPriority
from wedding_timeline.schemas import (
    BulkCreateResponse, CompletionResult, StatusChange, TaskCreate,
    TaskListItem, TaskResponse, TaskUpdate,
)
from wedding_timeline.services.task_service import TaskService

router = APIRouter()


class BulkCreateRequest(BaseModel):
    wedding_id: Optional[int] = None
    tasks: List[Dict[str, Any]]


class CompleteRequest(BaseModel):
    completion_notes: Optional[str] = None


class TaskUpdateResponse(BaseModel):
    task: TaskResponse
    status_changes: List[StatusChange] = []


@router.post("/", response_model=TaskResponse)
async def create_task(data: TaskCreate, db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).create_task(data)
    return TaskResponse.model_validate(task)


@router.post("/bulk", response_model=BulkCreateResponse)
async def bulk_create_tasks(data: BulkCreateRequest, db: AsyncSession = Depends(get_db)):
    """Items that fail validation are reported, the rest are created"""
    return await TaskService(db).bulk_create(data.tasks, wedding_id=data.wedding_id)


@router.get("/", response_model=List[TaskListItem])
async def list_tasks(
    wedding_id: Optional[int] = None,
    member_id: Optional[int] = None,
    status: Optional[TaskStatus] = None,
    category: Optional[TaskCategory] = None,
    priority: Optional[TaskPriority] = None,
    overdue_only: bool = False,
    upcoming_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """List tasks ordered by due date, then priority"""
    return await TaskService(db).list_tasks(
        wedding_id=wedding_id,
        member_id=member_id,
        status=status,
        category=category,
        priority=priority,
        overdue_only=overdue_only,
        upcoming_only=upcoming_only,
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).store.get(task_id)
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}", response_model=TaskUpdateResponse)
async def update_task(task_id: int, data: TaskUpdate, db: AsyncSession = Depends(get_db)):
    task, changes = await TaskService(db).update_task(task_id, data)
    return TaskUpdateResponse(task=TaskResponse.model_validate(task), status_changes=changes)


@router.post("/{task_id}/start", response_model=TaskResponse)
async def start_task(task_id: int, db: AsyncSession = Depends(get_db)):
    task = await TaskService(db).start_task(task_id)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/complete", response_model=CompletionResult)
async def complete_task(
    task_id: int,
    data: Optional[CompleteRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    notes = data.completion_notes if data else None
    return await TaskService(db).complete_task(task_id, notes=notes)
