"""
Timeline view and analytics tests
"""
from datetime import date, datetime, timedelta

from wedding_timeline.models.task import TaskCategory, TaskPhase, TaskPriority, TaskStatus
from wedding_timeline.services.timeline_view import (
    PHASE_NAMES, build_timeline_view, calculate_task_analytics, current_phase,
)
from wedding_timeline.utils.helpers import percent

TODAY = date(2025, 10, 1)


def test_empty_timeline_has_all_phases_at_zero():
    view = build_timeline_view([], today=TODAY)

    assert list(view.phases) == [p.value for p in TaskPhase]
    for phase, bucket in view.phases.items():
        assert bucket.total == 0
        assert bucket.progress == 0
        assert bucket.name == PHASE_NAMES[TaskPhase(phase)]
    assert view.overall_progress == 0
    assert view.generated_for == TODAY


def test_phase_progress_rounds_half_up(make_task):
    tasks = [make_task(i, phase=TaskPhase.ORDERS) for i in range(1, 9)]
    tasks[0].status = TaskStatus.COMPLETED

    view = build_timeline_view(tasks, today=TODAY)
    assert view.phases["orders"].progress == 13
    assert view.overall_progress == 13


def test_progress_stays_within_bounds(make_task):
    tasks = [
        make_task(1, phase=TaskPhase.SELECTION, status=TaskStatus.COMPLETED),
        make_task(2, phase=TaskPhase.SELECTION, status=TaskStatus.COMPLETED),
        make_task(3, phase=TaskPhase.SELECTION),
        make_task(4, phase=TaskPhase.APPROVAL, status=TaskStatus.COMPLETED),
    ]
    view = build_timeline_view(tasks, today=TODAY)

    assert view.phases["selection"].progress == 67
    assert view.phases["approval"].progress == 100
    assert view.overall_progress == 75
    assert all(0 <= b.progress <= 100 for b in view.phases.values())


def test_task_without_phase_lands_in_planning(make_task):
    view = build_timeline_view([make_task(1, phase=None)], today=TODAY)
    assert view.phases["planning"].total == 1


def test_cross_cutting_views(make_task):
    tasks = [
        make_task(1, priority=TaskPriority.CRITICAL),
        make_task(2, priority=TaskPriority.CRITICAL, status=TaskStatus.COMPLETED),
        make_task(3, due_date=TODAY - timedelta(days=5)),
        make_task(4, due_date=TODAY - timedelta(days=5), status=TaskStatus.COMPLETED),
        make_task(5, due_date=TODAY),
        make_task(6, due_date=TODAY + timedelta(days=7)),
        make_task(7, due_date=TODAY + timedelta(days=8)),
    ]
    view = build_timeline_view(tasks, today=TODAY)

    assert [t.id for t in view.critical_tasks] == [1]
    assert [t.id for t in view.overdue_tasks] == [3]
    assert [t.id for t in view.upcoming_tasks] == [5, 6]


def test_view_is_idempotent(make_task):
    tasks = [make_task(1, due_date=TODAY), make_task(2, status=TaskStatus.COMPLETED)]
    first = build_timeline_view(tasks, today=TODAY, wedding_id=1)
    second = build_timeline_view(tasks, today=TODAY, wedding_id=1)
    assert first.model_dump() == second.model_dump()


def test_current_phase_is_first_unfinished(make_task):
    tasks = [
        make_task(1, phase=TaskPhase.PLANNING, status=TaskStatus.COMPLETED),
        make_task(2, phase=TaskPhase.ORDERS),
        make_task(3, phase=TaskPhase.EXECUTION),
    ]
    assert current_phase(build_timeline_view(tasks, today=TODAY)) == "orders"


def test_current_phase_when_everything_is_done(make_task):
    tasks = [make_task(1, status=TaskStatus.COMPLETED)]
    assert current_phase(build_timeline_view(tasks, today=TODAY)) == "completion"


def test_percent_helper():
    assert percent(0, 0) == 0
    assert percent(1, 2) == 50
    assert percent(1, 3) == 33
    assert percent(2, 3) == 67


# ===================== ANALYTICS =====================


def test_task_analytics(make_task):
    started = datetime(2025, 9, 1, 9, 0)
    tasks = [
        make_task(1, category=TaskCategory.MEASUREMENTS, status=TaskStatus.COMPLETED,
                  started_at=started, completed_at=started + timedelta(hours=3)),
        make_task(2, category=TaskCategory.MEASUREMENTS, status=TaskStatus.COMPLETED,
                  started_at=started, completed_at=started + timedelta(hours=5)),
        make_task(3, category=TaskCategory.ORDERS, status=TaskStatus.IN_PROGRESS,
                  due_date=TODAY - timedelta(days=1)),
        make_task(4, status=TaskStatus.BLOCKED, priority=TaskPriority.HIGH,
                  due_date=TODAY + timedelta(days=2)),
    ]
    analytics = calculate_task_analytics(tasks, today=TODAY)

    assert analytics.total_tasks == 4
    assert analytics.completed_tasks == 2
    assert analytics.in_progress_tasks == 1
    assert analytics.blocked_tasks == 1
    assert analytics.overdue_tasks == 1
    assert analytics.completion_rate == 50
    assert analytics.category_breakdown == {"measurements": 2, "orders": 1, "other": 1}
    assert analytics.priority_breakdown == {"medium": 3, "high": 1}
    assert analytics.status_breakdown["completed"] == 2
    assert analytics.average_completion_time == 4
    assert len(analytics.upcoming_deadlines) == 1
    assert analytics.upcoming_deadlines[0].task_id == 4
    assert analytics.upcoming_deadlines[0].days_remaining == 2


def test_analytics_upcoming_deadlines_capped_at_five(make_task):
    tasks = [make_task(i, due_date=TODAY + timedelta(days=7 - i)) for i in range(1, 8)]
    analytics = calculate_task_analytics(tasks, today=TODAY)

    deadlines = [d.due_date for d in analytics.upcoming_deadlines]
    assert len(deadlines) == 5
    assert deadlines == sorted(deadlines)


def test_analytics_empty():
    analytics = calculate_task_analytics([], today=TODAY)
    assert analytics.total_tasks == 0
    assert analytics.completion_rate == 0
    assert analytics.average_completion_time == 0
