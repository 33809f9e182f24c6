"""
Critical path estimate for a wedding timeline.

The headline numbers are a heuristic: the hours of every critical,
measurements or orders task are summed and the latest due date among them is
reported as the completion date. ``longest_path`` adds a real critical-path
forward pass over the prerequisite graph alongside it.
"""
from datetime import date
from typing import Iterable, List, Optional

from wedding_timeline.config import get_settings
from wedding_timeline.models.task import TaskCategory, TaskPriority, TaskStatus
from wedding_timeline.schemas import (
    Bottleneck, CriticalPathReport, RiskFactor, TaskResponse,
)
from wedding_timeline.services.dependency_resolver import longest_path, task_status
from wedding_timeline.services.timeline_view import is_completed, is_overdue

settings = get_settings()

CRITICAL_CATEGORIES = (TaskCategory.MEASUREMENTS, TaskCategory.ORDERS)


def is_on_critical_path(task) -> bool:
    return task.priority == TaskPriority.CRITICAL or task.category in CRITICAL_CATEGORIES


def task_hours(task, default_hours: Optional[float] = None) -> float:
    if task.estimated_duration_hours is not None:
        return float(task.estimated_duration_hours)
    return settings.DEFAULT_TASK_DURATION_HOURS if default_hours is None else default_hours


def identify_bottlenecks(tasks: Iterable, today: date) -> List[Bottleneck]:
    """Unfinished tasks that other tasks wait on and that are stuck"""
    bottlenecks = []
    for task in tasks:
        if not task.triggers_tasks or is_completed(task):
            continue
        overdue = is_overdue(task, today)
        if overdue or task_status(task) == TaskStatus.ON_HOLD:
            bottlenecks.append(Bottleneck(
                task_id=task.id,
                task_name=task.task_name,
                blocking_count=len(task.triggers_tasks),
                reason="overdue" if overdue else TaskStatus.ON_HOLD.value,
            ))
    return bottlenecks


def identify_risk_factors(tasks: Iterable, today: date) -> List[RiskFactor]:
    risks = []
    for task in tasks:
        if task.due_date is None or is_completed(task):
            continue
        days_left = (task.due_date - today).days
        if days_left < 0:
            risks.append(RiskFactor(
                type="overdue",
                task_id=task.id,
                task_name=task.task_name,
                days_overdue=-days_left,
            ))
        elif days_left < settings.URGENT_WINDOW_DAYS and task_status(task) == TaskStatus.PENDING:
            risks.append(RiskFactor(
                type="urgent",
                task_id=task.id,
                task_name=task.task_name,
                days_remaining=days_left,
            ))
    return risks


def estimate_critical_path(
    tasks: Iterable,
    today: Optional[date] = None,
    default_hours: Optional[float] = None,
) -> CriticalPathReport:
    today = today or date.today()
    tasks = list(tasks)
    default_hours = settings.DEFAULT_TASK_DURATION_HOURS if default_hours is None else default_hours

    critical = [t for t in tasks if is_on_critical_path(t)]
    due_dates = [t.due_date for t in critical if t.due_date is not None]
    path, path_hours, cyclic = longest_path(tasks, default_hours)

    return CriticalPathReport(
        critical_tasks=[TaskResponse.model_validate(t) for t in critical],
        estimated_total_hours=sum(task_hours(t, default_hours) for t in critical),
        estimated_completion_date=max(due_dates) if due_dates else None,
        bottlenecks=identify_bottlenecks(tasks, today),
        risk_factors=identify_risk_factors(tasks, today),
        longest_path=path,
        longest_path_hours=path_hours,
        cyclic_task_ids=cyclic,
    )
