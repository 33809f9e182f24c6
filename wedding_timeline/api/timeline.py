"""
Timeline API endpoints - phase view, critical path, analytics and
wedding-wide maintenance operations
"""
from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_timeline.agents.timeline_advisor.agent import TimelineAdvisorAgent
from wedding_timeline.database import get_db
from wedding_timeline.schemas import (
    ConflictReport, CriticalPathReport, ProgressReport, Recommendation, ReminderSummary,
    StatusChange, TaskAnalytics, TimelineView,
)
from wedding_timeline.services.critical_path import estimate_critical_path
from wedding_timeline.services.dependency_resolver import detect_dependency_violations
from wedding_timeline.services.task_service import TaskService
from wedding_timeline.services.timeline_health import build_progress_report
from wedding_timeline.services.timeline_view import build_timeline_view, calculate_task_analytics

router = APIRouter()

advisor = TimelineAdvisorAgent()


async def _wedding_tasks(service: TaskService, wedding_id: int):
    await service.get_wedding(wedding_id)
    return await service.store.for_wedding(wedding_id)


@router.get("/{wedding_id}", response_model=TimelineView)
async def get_timeline(wedding_id: int, db: AsyncSession = Depends(get_db)):
    tasks = await _wedding_tasks(TaskService(db), wedding_id)
    return build_timeline_view(tasks, wedding_id=wedding_id)


@router.get("/{wedding_id}/critical-path", response_model=CriticalPathReport)
async def get_critical_path(wedding_id: int, db: AsyncSession = Depends(get_db)):
    tasks = await _wedding_tasks(TaskService(db), wedding_id)
    return estimate_critical_path(tasks)


@router.get("/{wedding_id}/analytics", response_model=TaskAnalytics)
async def get_task_analytics(wedding_id: int, db: AsyncSession = Depends(get_db)):
    tasks = await _wedding_tasks(TaskService(db), wedding_id)
    return calculate_task_analytics(tasks)


@router.get("/{wedding_id}/conflicts", response_model=ConflictReport)
async def get_conflicts(wedding_id: int, db: AsyncSession = Depends(get_db)):
    """Dependency problems that need a human to untangle"""
    tasks = await _wedding_tasks(TaskService(db), wedding_id)
    violations = detect_dependency_violations(tasks)
    return ConflictReport(
        dependency_violations=violations,
        requires_manual_review=bool(violations),
    )


@router.post("/{wedding_id}/reconcile", response_model=List[StatusChange])
async def reconcile_timeline(wedding_id: int, db: AsyncSession = Depends(get_db)):
    return await TaskService(db).reconcile(wedding_id)


@router.post("/{wedding_id}/reminders", response_model=ReminderSummary)
async def send_reminders(wedding_id: int, db: AsyncSession = Depends(get_db)):
    return await TaskService(db).send_reminders(wedding_id)


@router.post("/{wedding_id}/recommendations", response_model=Recommendation)
async def get_recommendations(wedding_id: int, db: AsyncSession = Depends(get_db)):
    service = TaskService(db)
    wedding = await service.get_wedding(wedding_id)
    tasks = await service.store.for_wedding(wedding_id)
    return await advisor.recommend(wedding, tasks, today=date.today())


@router.get("/{wedding_id}/progress-report", response_model=ProgressReport)
async def get_progress_report(wedding_id: int, db: AsyncSession = Depends(get_db)):
    """Party progress, task counts and timeline health in one read"""
    service = TaskService(db)
    wedding = await service.get_wedding(wedding_id)
    tasks = await service.store.for_wedding(wedding_id)
    members = await service.list_members(wedding_id)
    return build_progress_report(wedding, members, tasks, today=date.today())
