"""
Timeline view and task analytics - read-only projections over a wedding's tasks
"""
from collections import Counter
from datetime import date, timedelta
from typing import Iterable, List, Optional

from wedding_timeline.config import get_settings
from wedding_timeline.models.task import TaskPhase, TaskPriority, TaskStatus
from wedding_timeline.schemas import (
    PhaseBucket, TaskAnalytics, TaskResponse, TimelineView, UpcomingDeadline,
)
from wedding_timeline.services.dependency_resolver import task_status
from wedding_timeline.utils.helpers import percent

settings = get_settings()

PHASE_NAMES = {
    TaskPhase.SETUP: "Setup & Planning",
    TaskPhase.PLANNING: "Planning & Coordination",
    TaskPhase.MEASUREMENTS: "Measurements Collection",
    TaskPhase.SELECTION: "Outfit Selection",
    TaskPhase.APPROVAL: "Approvals",
    TaskPhase.ORDERS: "Order Processing",
    TaskPhase.PRODUCTION: "Production & Fulfillment",
    TaskPhase.EXECUTION: "Final Execution",
    TaskPhase.COMPLETION: "Completion",
}


def is_completed(task) -> bool:
    return task_status(task) == TaskStatus.COMPLETED


def is_overdue(task, today: date) -> bool:
    return task.due_date is not None and task.due_date < today and not is_completed(task)


def is_upcoming(task, today: date, window_days: Optional[int] = None) -> bool:
    if task.due_date is None or is_completed(task):
        return False
    window = settings.UPCOMING_WINDOW_DAYS if window_days is None else window_days
    return today <= task.due_date <= today + timedelta(days=window)


def _to_response(tasks: Iterable) -> List[TaskResponse]:
    return [TaskResponse.model_validate(t) for t in tasks]


def build_timeline_view(
    tasks: Iterable,
    today: Optional[date] = None,
    wedding_id: Optional[int] = None,
) -> TimelineView:
    """Group tasks into the fixed phase buckets and compute progress"""
    today = today or date.today()
    tasks = list(tasks)

    grouped = {phase: [] for phase in TaskPhase}
    for task in tasks:
        phase = TaskPhase(task.phase) if task.phase else TaskPhase.PLANNING
        grouped[phase].append(task)

    phases = {}
    for phase, bucket in grouped.items():
        done = sum(1 for t in bucket if is_completed(t))
        phases[phase.value] = PhaseBucket(
            name=PHASE_NAMES[phase],
            tasks=_to_response(bucket),
            total=len(bucket),
            completed=done,
            progress=percent(done, len(bucket)),
        )

    completed = sum(1 for t in tasks if is_completed(t))
    return TimelineView(
        wedding_id=wedding_id,
        phases=phases,
        overall_progress=percent(completed, len(tasks)),
        critical_tasks=_to_response(
            t for t in tasks
            if t.priority == TaskPriority.CRITICAL and not is_completed(t)
        ),
        overdue_tasks=_to_response(t for t in tasks if is_overdue(t, today)),
        upcoming_tasks=_to_response(t for t in tasks if is_upcoming(t, today)),
        generated_for=today,
    )


def current_phase(view: TimelineView) -> str:
    """First phase (in fixed order) that still has unfinished work"""
    for key, bucket in view.phases.items():
        if bucket.total and bucket.completed < bucket.total:
            return key
    return TaskPhase.COMPLETION.value if view.overall_progress == 100 else TaskPhase.PLANNING.value


def calculate_task_analytics(tasks: Iterable, today: Optional[date] = None) -> TaskAnalytics:
    today = today or date.today()
    tasks = list(tasks)
    statuses = [task_status(t) for t in tasks]
    completed = statuses.count(TaskStatus.COMPLETED)

    durations = [
        (t.completed_at - t.started_at).total_seconds()
        for t in tasks
        if is_completed(t) and t.started_at and t.completed_at
    ]
    average_hours = round(sum(durations) / len(durations) / 3600) if durations else 0

    upcoming = sorted(
        (t for t in tasks if is_upcoming(t, today)),
        key=lambda t: t.due_date,
    )[:5]

    return TaskAnalytics(
        total_tasks=len(tasks),
        completed_tasks=completed,
        in_progress_tasks=statuses.count(TaskStatus.IN_PROGRESS),
        blocked_tasks=statuses.count(TaskStatus.BLOCKED),
        overdue_tasks=sum(1 for t in tasks if is_overdue(t, today)),
        completion_rate=percent(completed, len(tasks)),
        category_breakdown=dict(Counter(_value(t.category, "other") for t in tasks)),
        priority_breakdown=dict(Counter(_value(t.priority, "medium") for t in tasks)),
        status_breakdown=dict(Counter(s.value for s in statuses)),
        average_completion_time=average_hours,
        upcoming_deadlines=[
            UpcomingDeadline(
                task_id=t.id,
                task_name=t.task_name,
                due_date=t.due_date,
                priority=t.priority or TaskPriority.MEDIUM,
                days_remaining=(t.due_date - today).days,
            )
            for t in upcoming
        ],
    )


def _value(field, default: str) -> str:
    if field is None:
        return default
    return getattr(field, "value", field)
