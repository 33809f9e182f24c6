"""
Task lifecycle operations: create, update, status transitions, completion
side effects and reminders.

Every operation runs inside the caller's session; ``get_db`` commits once at
the end of the request, so a completion, the status changes it causes and
the wedding roll-up land together or not at all. The party member sync is
best effort and runs in its own SAVEPOINT.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_timeline.errors import (
    DependencyCycle, NotFound, TaskBlocked, ValidationFailed,
)
from wedding_timeline.models.task import (
    DEFAULT_REMINDER_SCHEDULE, TaskCategory, TaskStatus, TimelineTask,
)
from wedding_timeline.models.wedding import PartyMember, Wedding
from wedding_timeline.schemas import (
    BulkCreateResponse, BulkCreateResult, CompletionResult, ReminderResult,
    ReminderSummary, StatusChange, TaskCreate, TaskListItem, TaskResponse,
    TaskUpdate,
)
from wedding_timeline.services import dependency_resolver as graph
from wedding_timeline.services.milestones import generate_milestones
from wedding_timeline.services.notification_service import (
    NotificationService, milestone_reached_message, notification_service,
    task_reminder_message,
)
from wedding_timeline.services.task_store import TaskStore
from wedding_timeline.services.timeline_view import build_timeline_view, current_phase
from wedding_timeline.utils.helpers import days_until

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 8

# Only reachable once every prerequisite is completed
GATED_STATUSES = (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)

# Columns a PATCH may change but not null out
REQUIRED_FIELDS = (
    "task_name", "category", "phase", "priority", "status",
    "prerequisite_task_ids", "completion_percentage", "reminder_schedule",
)

# Completing a task in one of these categories updates the assigned member
MEMBER_STATUS_BY_CATEGORY = {
    TaskCategory.MEASUREMENTS: ("measurements_status", "confirmed"),
    TaskCategory.SELECTION: ("outfit_status", "confirmed"),
    TaskCategory.PAYMENT: ("payment_status", "paid"),
}


def _dedupe(ids) -> List[int]:
    seen, ordered = set(), []
    for i in ids or []:
        if i not in seen:
            seen.add(i)
            ordered.append(i)
    return ordered


def to_list_item(task: TimelineTask, today: date) -> TaskListItem:
    base = TaskResponse.model_validate(task).model_dump()
    completed = task.status == TaskStatus.COMPLETED
    return TaskListItem(
        **base,
        is_overdue=task.due_date is not None and task.due_date < today and not completed,
        days_until_due=days_until(task.due_date, today),
    )


class TaskService:
    def __init__(self, db: AsyncSession, notifier: Optional[NotificationService] = None):
        self.db = db
        self.store = TaskStore(db)
        self.notifier = notifier or notification_service

    # --- Lookups ---

    async def get_wedding(self, wedding_id: int) -> Wedding:
        wedding = await self.db.get(Wedding, wedding_id)
        if not wedding:
            raise NotFound(f"Wedding {wedding_id} not found", code="WEDDING_NOT_FOUND")
        return wedding

    async def _check_member(self, wedding_id: int, member_id: Optional[int]) -> None:
        if member_id is None:
            return
        result = await self.db.execute(
            select(PartyMember.id).where(
                PartyMember.id == member_id,
                PartyMember.wedding_id == wedding_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise ValidationFailed(
                f"Party member {member_id} does not belong to wedding {wedding_id}"
            )

    async def list_members(self, wedding_id: int) -> List[PartyMember]:
        result = await self.db.execute(
            select(PartyMember)
            .where(PartyMember.wedding_id == wedding_id)
            .order_by(PartyMember.id)
        )
        return list(result.scalars().all())

    async def list_tasks(self, today: Optional[date] = None, **filters: Any) -> List[TaskListItem]:
        today = today or date.today()
        tasks = await self.store.find(today=today, **filters)
        return [to_list_item(t, today) for t in tasks]

    # --- Create ---

    async def create_task(self, data: TaskCreate, is_milestone: bool = False) -> TimelineTask:
        await self.get_wedding(data.wedding_id)
        await self._check_member(data.wedding_id, data.assigned_member_id)

        existing = await self.store.for_wedding(data.wedding_id)
        prereqs = _dedupe(data.prerequisite_task_ids)

        fields = data.model_dump(exclude_none=True)
        fields["prerequisite_task_ids"] = prereqs
        fields["triggers_tasks"] = []
        fields["status"] = graph.initial_status(prereqs, existing)
        fields["is_milestone"] = is_milestone
        fields.setdefault("reminder_schedule", dict(DEFAULT_REMINDER_SCHEDULE))

        task = await self.store.insert(**fields)
        self._link_triggers(task.id, prereqs, existing)
        await self.db.flush()

        logger.info(
            f"Created task {task.id} '{task.task_name}' for wedding {task.wedding_id} "
            f"({task.status.value}, {len(prereqs)} prerequisites)"
        )
        return task

    async def bulk_create(self, items: List[Dict[str, Any]], wedding_id: Optional[int] = None) -> BulkCreateResponse:
        """Create many tasks; one bad item does not stop the rest"""
        results = []
        for raw in items:
            if not isinstance(raw, dict):
                results.append(BulkCreateResult(
                    success=False,
                    error=f"Task entry must be an object, got {type(raw).__name__}",
                ))
                continue
            payload = {**raw, "auto_created": True}
            if wedding_id is not None:
                payload.setdefault("wedding_id", wedding_id)
            try:
                data = TaskCreate.model_validate(payload)
                async with self.db.begin_nested():
                    task = await self.create_task(data)
                results.append(BulkCreateResult(
                    success=True,
                    task=TaskResponse.model_validate(task),
                    task_name=task.task_name,
                ))
            except (ValidationError, ValidationFailed, NotFound) as e:
                results.append(BulkCreateResult(
                    success=False,
                    error=str(e),
                    task_name=raw.get("task_name"),
                ))

        return BulkCreateResponse(
            created_count=sum(1 for r in results if r.success),
            total_attempts=len(results),
            results=results,
        )

    async def create_milestone_tasks(
        self,
        wedding_id: int,
        party_size: int = 3,
        chain: bool = True,
    ) -> List[TimelineTask]:
        """Persist the generated milestones, optionally each gated on the previous one"""
        wedding = await self.get_wedding(wedding_id)
        created = []
        previous_id = None
        for milestone in generate_milestones(wedding.wedding_date, party_size):
            data = TaskCreate(
                wedding_id=wedding_id,
                task_name=milestone.name,
                description=milestone.description,
                category=milestone.category,
                phase=milestone.phase,
                priority=milestone.priority,
                due_date=milestone.due_date,
                estimated_duration_hours=milestone.estimated_duration_days * HOURS_PER_DAY,
                prerequisite_task_ids=[previous_id] if chain and previous_id else [],
                auto_created=True,
            )
            task = await self.create_task(data, is_milestone=True)
            created.append(task)
            previous_id = task.id

        logger.info(f"Generated {len(created)} milestone tasks for wedding {wedding_id}")
        return created

    # --- Update ---

    async def update_task(
        self,
        task_id: int,
        data: TaskUpdate,
        wedding_id: Optional[int] = None,
    ) -> Tuple[TimelineTask, List[StatusChange]]:
        """
        Apply a partial update. Fields sent as ``null`` are cleared; required
        columns cannot be. A status change runs through :meth:`transition`
        after the new prerequisites are in place, and the readiness check
        happens before anything is written.
        """
        task = await self.store.get(task_id, wedding_id)
        updates = data.model_dump(exclude_unset=True)
        cleared = [f for f in REQUIRED_FIELDS if f in updates and updates[f] is None]
        if cleared:
            raise ValidationFailed(f"Task {task.id}: {', '.join(cleared)} cannot be cleared")

        new_status = updates.pop("status", None)
        target = TaskStatus(new_status) if new_status is not None else None
        changes: List[StatusChange] = []

        if updates.get("assigned_member_id") is not None:
            await self._check_member(task.wedding_id, updates["assigned_member_id"])

        old_prereqs = graph.prerequisite_ids(task)
        new_prereqs = _dedupe(updates["prerequisite_task_ids"]) if "prerequisite_task_ids" in updates else old_prereqs
        prereqs_changed = new_prereqs != old_prereqs
        tasks = await self.store.for_wedding(task.wedding_id)

        if prereqs_changed and (task.id in new_prereqs or graph.creates_cycle(task.id, new_prereqs, tasks)):
            raise DependencyCycle(
                f"Task {task.id} cannot depend on {new_prereqs}: prerequisites would form a cycle"
            )
        if target in GATED_STATUSES:
            self._ensure_ready(task, new_prereqs, tasks)

        if "prerequisite_task_ids" in updates:
            if prereqs_changed:
                self._unlink_triggers(task.id, set(old_prereqs) - set(new_prereqs), tasks)
                self._link_triggers(task.id, new_prereqs, tasks)
            updates["prerequisite_task_ids"] = new_prereqs

        if updates:
            await self.store.update(task, updates)

        if target is not None:
            changes = await self.transition(task, target, updates.get("completion_notes"))
        elif prereqs_changed:
            changes = await self._propagate(task.wedding_id, [task.id])

        return task, changes

    # --- Status transitions ---

    async def transition(
        self,
        task: TimelineTask,
        new_status: TaskStatus,
        completion_notes: Optional[str] = None,
    ) -> List[StatusChange]:
        """
        Move a task to ``new_status`` and re-evaluate the tasks waiting on it.

        Completing always stamps ``completed_at`` (kept if already set) and
        ``completion_percentage = 100``; starting stamps ``started_at`` only
        the first time. Starting or completing requires every prerequisite
        to be completed, whatever status the task is in now.
        """
        current = graph.task_status(task)
        if new_status in GATED_STATUSES:
            self._ensure_ready(task, graph.prerequisite_ids(task), await self.store.for_wedding(task.wedding_id))

        now = datetime.utcnow()
        fields: Dict[str, Any] = {"status": new_status}
        if new_status == TaskStatus.IN_PROGRESS and task.started_at is None:
            fields["started_at"] = now
        if new_status == TaskStatus.COMPLETED:
            fields["completed_at"] = task.completed_at if current == TaskStatus.COMPLETED and task.completed_at else now
            fields["completion_percentage"] = 100
            if completion_notes:
                fields["completion_notes"] = completion_notes
        elif current == TaskStatus.COMPLETED:
            fields["completed_at"] = None

        await self.store.update(task, fields)
        logger.info(f"Task {task.id} {current.value} -> {new_status.value}")

        tasks = await self.store.for_wedding(task.wedding_id)
        dependents = graph.build_dependents_index(tasks).get(task.id, [])
        changes = await self._apply_changes(tasks, graph.propagate(tasks, [task.id, *dependents]))

        if new_status == TaskStatus.COMPLETED:
            await self._refresh_wedding_progress(task.wedding_id, tasks)
        return changes

    async def start_task(self, task_id: int, wedding_id: Optional[int] = None) -> TimelineTask:
        task = await self.store.get(task_id, wedding_id)
        await self.transition(task, TaskStatus.IN_PROGRESS)
        return task

    async def complete_task(
        self,
        task_id: int,
        notes: Optional[str] = None,
        wedding_id: Optional[int] = None,
    ) -> CompletionResult:
        task = await self.store.get(task_id, wedding_id)
        changes = await self.transition(task, TaskStatus.COMPLETED, notes)
        member_synced = await self._sync_member_status(task)
        await self._notify_milestone(task)
        return CompletionResult(
            task=TaskResponse.model_validate(task),
            status_changes=changes,
            member_synced=member_synced,
        )

    async def reconcile(self, wedding_id: int) -> List[StatusChange]:
        await self.get_wedding(wedding_id)
        tasks = await self.store.for_wedding(wedding_id)
        changes = await self._apply_changes(tasks, graph.reconcile(tasks))
        logger.info(f"Reconciled wedding {wedding_id}: {len(changes)} status changes")
        return changes

    async def _propagate(self, wedding_id: int, seed_ids: List[int]) -> List[StatusChange]:
        tasks = await self.store.for_wedding(wedding_id)
        return await self._apply_changes(tasks, graph.propagate(tasks, seed_ids))

    async def _apply_changes(self, tasks: List[TimelineTask], changes: List[StatusChange]) -> List[StatusChange]:
        index = graph.build_task_index(tasks)
        for change in changes:
            await self.store.update(index[change.task_id], {"status": change.new_status})
            logger.info(
                f"Task {change.task_id} {change.previous_status.value} -> "
                f"{change.new_status.value} (prerequisites re-evaluated)"
            )
        return changes

    @staticmethod
    def _ensure_ready(task: TimelineTask, prereq_ids: List[int], tasks: List[TimelineTask]) -> None:
        statuses = {t.id: graph.task_status(t) for t in tasks}
        if not graph.prerequisites_satisfied(prereq_ids, statuses):
            waiting = [pid for pid in prereq_ids if statuses.get(pid) != TaskStatus.COMPLETED]
            raise TaskBlocked(
                f"Task {task.id} '{task.task_name}' is waiting on prerequisites {waiting}"
            )

    # --- Side effects ---

    @staticmethod
    def _link_triggers(task_id: int, prereq_ids: List[int], tasks: List[TimelineTask]) -> None:
        for other in tasks:
            if other.id in prereq_ids and task_id not in (other.triggers_tasks or []):
                other.triggers_tasks = [*(other.triggers_tasks or []), task_id]

    @staticmethod
    def _unlink_triggers(task_id: int, prereq_ids, tasks: List[TimelineTask]) -> None:
        for other in tasks:
            if other.id in prereq_ids and task_id in (other.triggers_tasks or []):
                other.triggers_tasks = [t for t in other.triggers_tasks if t != task_id]

    async def _sync_member_status(self, task: TimelineTask) -> bool:
        if not task.assigned_member_id or task.category is None:
            return False
        mapping = MEMBER_STATUS_BY_CATEGORY.get(TaskCategory(task.category))
        if mapping is None:
            return False

        field, value = mapping
        try:
            async with self.db.begin_nested():
                member = await self.db.get(PartyMember, task.assigned_member_id)
                if member is None:
                    logger.warning(
                        f"Task {task.id} completed but member {task.assigned_member_id} no longer exists"
                    )
                    return False
                setattr(member, field, value)
                member.updated_at = datetime.utcnow()
        except SQLAlchemyError as e:
            logger.warning(
                f"Member {task.assigned_member_id} {field} sync failed after completing "
                f"task {task.id}; needs manual reconciliation: {e}"
            )
            return False

        logger.info(f"Member {task.assigned_member_id} {field} set to {value}")
        return True

    async def _notify_milestone(self, task: TimelineTask) -> None:
        if not task.is_milestone and task.category != TaskCategory.MILESTONE:
            return
        wedding = await self.db.get(Wedding, task.wedding_id)
        if not wedding or not wedding.coordinator_email:
            return
        subject, body = milestone_reached_message(task, wedding)
        if not await self.notifier.send(wedding.coordinator_email, subject, body):
            logger.warning(f"Milestone notice for task {task.id} was not delivered")

    async def _refresh_wedding_progress(self, wedding_id: int, tasks: List[TimelineTask]) -> None:
        wedding = await self.db.get(Wedding, wedding_id)
        if wedding is None:
            return
        view = build_timeline_view(tasks, wedding_id=wedding_id)
        wedding.completion_percentage = view.overall_progress
        wedding.current_phase = current_phase(view)
        wedding.updated_at = datetime.utcnow()
        await self.db.flush()

    # --- Reminders ---

    async def send_reminders(self, wedding_id: int, today: Optional[date] = None) -> ReminderSummary:
        """Email assignees of tasks due by tomorrow that have not been reminded yet"""
        today = today or date.today()
        await self.get_wedding(wedding_id)
        tasks = await self.store.find_due_for_reminder(wedding_id, today + timedelta(days=1))
        if tasks and not self.notifier.is_available:
            logger.warning(f"Email delivery is not configured; {len(tasks)} reminders for wedding {wedding_id} will fail")

        results = []
        for task in tasks:
            member = None
            if task.assigned_member_id:
                member = await self.db.get(PartyMember, task.assigned_member_id)
            if member is None or not member.email:
                continue

            subject, body = task_reminder_message(task, member)
            if await self.notifier.send(member.email, subject, body):
                await self.store.update(task, {
                    "reminder_sent": True,
                    "last_reminder_sent_at": datetime.utcnow(),
                })
                results.append(ReminderResult(task_id=task.id, success=True))
            else:
                results.append(ReminderResult(
                    task_id=task.id, success=False, error="Email delivery failed",
                ))

        sent = sum(1 for r in results if r.success)
        logger.info(f"Reminders for wedding {wedding_id}: {sent}/{len(results)} sent")
        return ReminderSummary(reminders_sent=sent, total_attempts=len(results), results=results)
