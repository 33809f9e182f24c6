"""
Timeline health - risk level, next steps and the wedding progress report.

These rules are deterministic so the report can be produced without the
AI provider; the timeline advisor uses the same rules as its fallback.
"""
from datetime import date, datetime
from typing import Iterable, List, Optional

from wedding_timeline.models.task import TaskPriority
from wedding_timeline.schemas import (
    CriticalPathReport, OutstandingMember, PartyProgress, ProgressReport,
    TaskProgress, TimelineHealth, TimelineView, WeddingOverview,
)
from wedding_timeline.services.critical_path import estimate_critical_path
from wedding_timeline.services.timeline_view import build_timeline_view, calculate_task_analytics
from wedding_timeline.utils.helpers import days_until, percent

MAX_NEXT_STEPS = 5

# Party member statuses that count as done
MEASUREMENTS_DONE = "confirmed"
OUTFIT_DONE = "confirmed"
PAYMENT_DONE = "paid"


def assess_risk_level(timeline: TimelineView, critical_path: CriticalPathReport, days_left: int) -> str:
    """
    high:   an overdue critical task, anything overdue within 30 days of the
            wedding, or under two weeks out with less than 75% done
    medium: anything overdue, or an urgent task on the critical list
    low:    otherwise
    """
    overdue = timeline.overdue_tasks
    if any(t.priority == TaskPriority.CRITICAL for t in overdue):
        return "high"
    if overdue and days_left <= 30:
        return "high"
    if days_left < 14 and timeline.overall_progress < 75:
        return "high"
    if overdue or any(r.type == "urgent" for r in critical_path.risk_factors):
        return "medium"
    return "low"


def next_steps(timeline: TimelineView, critical_path: CriticalPathReport, limit: int = MAX_NEXT_STEPS) -> List[str]:
    """Overdue work first, then bottlenecks, then what is due this week"""
    steps = []
    for risk in critical_path.risk_factors:
        if risk.type == "overdue":
            steps.append(f"Complete overdue task '{risk.task_name}' ({risk.days_overdue} days late)")
    for bottleneck in critical_path.bottlenecks:
        steps.append(
            f"Unblock '{bottleneck.task_name}': {bottleneck.blocking_count} task(s) are waiting on it"
        )
    for task in timeline.upcoming_tasks:
        steps.append(f"Prepare for '{task.task_name}' due {task.due_date.isoformat()}")
    if not steps:
        steps.append("Timeline is on track; keep monitoring upcoming deadlines")
    return steps[:limit]


def summarize_party(members: Iterable) -> PartyProgress:
    members = list(members)
    measured = [m for m in members if m.measurements_status == MEASUREMENTS_DONE]
    return PartyProgress(
        total_members=len(members),
        measurements_completed=len(measured),
        measurements_percentage=percent(len(measured), len(members)),
        outfits_confirmed=sum(1 for m in members if m.outfit_status == OUTFIT_DONE),
        payments_received=sum(1 for m in members if m.payment_status == PAYMENT_DONE),
        outstanding_members=[
            OutstandingMember(
                id=m.id,
                name=m.full_name,
                role=m.role,
                measurements_status=m.measurements_status,
            )
            for m in members if m.measurements_status != MEASUREMENTS_DONE
        ],
    )


def build_progress_report(
    wedding,
    members: Iterable,
    tasks: Iterable,
    today: Optional[date] = None,
) -> ProgressReport:
    today = today or date.today()
    tasks = list(tasks)
    timeline = build_timeline_view(tasks, today=today, wedding_id=wedding.id)
    critical_path = estimate_critical_path(tasks, today=today)
    analytics = calculate_task_analytics(tasks, today=today)
    days_left = days_until(wedding.wedding_date, today)

    return ProgressReport(
        wedding_overview=WeddingOverview(
            wedding_id=wedding.id,
            wedding_date=wedding.wedding_date,
            days_remaining=days_left,
            overall_progress=wedding.completion_percentage or 0,
            current_phase=wedding.current_phase or "planning",
        ),
        party_progress=summarize_party(members),
        task_progress=TaskProgress(
            total_tasks=analytics.total_tasks,
            completed_tasks=analytics.completed_tasks,
            in_progress_tasks=analytics.in_progress_tasks,
            blocked_tasks=analytics.blocked_tasks,
            overdue_tasks=analytics.overdue_tasks,
        ),
        timeline_health=TimelineHealth(
            on_schedule=not timeline.overdue_tasks,
            risk_level=assess_risk_level(timeline, critical_path, days_left),
            critical_deadlines=analytics.upcoming_deadlines,
            recommendations=next_steps(timeline, critical_path),
        ),
        generated_at=datetime.utcnow(),
    )
