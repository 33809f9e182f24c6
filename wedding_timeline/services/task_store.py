"""
Task record store - the only place that issues queries against timeline tasks
"""
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, case
from sqlalchemy.ext.asyncio import AsyncSession

from wedding_timeline.errors import NotFound
from wedding_timeline.models.task import TimelineTask, TaskPriority, TaskStatus

# Higher number sorts first
_PRIORITY_RANK = case(
    (TimelineTask.priority == TaskPriority.CRITICAL, 4),
    (TimelineTask.priority == TaskPriority.HIGH, 3),
    (TimelineTask.priority == TaskPriority.MEDIUM, 2),
    else_=1,
)


class TaskStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, task_id: int, wedding_id: Optional[int] = None) -> TimelineTask:
        query = select(TimelineTask).where(TimelineTask.id == task_id)
        if wedding_id is not None:
            query = query.where(TimelineTask.wedding_id == wedding_id)
        result = await self.db.execute(query)
        task = result.scalar_one_or_none()
        if not task:
            raise NotFound(f"Task {task_id} not found", code="TASK_NOT_FOUND")
        return task

    async def for_wedding(self, wedding_id: int) -> List[TimelineTask]:
        result = await self.db.execute(
            select(TimelineTask)
            .where(TimelineTask.wedding_id == wedding_id)
            .order_by(TimelineTask.due_date.asc().nullslast(), TimelineTask.id)
        )
        return list(result.scalars().all())

    async def find(
        self,
        wedding_id: Optional[int] = None,
        member_id: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        overdue_only: bool = False,
        upcoming_only: bool = False,
        upcoming_days: int = 7,
        today: Optional[date] = None,
    ) -> List[TimelineTask]:
        """Filtered read ordered by due date ascending, then priority descending"""
        today = today or date.today()
        query = select(TimelineTask)

        if wedding_id is not None:
            query = query.where(TimelineTask.wedding_id == wedding_id)
        if member_id is not None:
            query = query.where(TimelineTask.assigned_member_id == member_id)
        if status:
            query = query.where(TimelineTask.status == status)
        if category:
            query = query.where(TimelineTask.category == category)
        if priority:
            query = query.where(TimelineTask.priority == priority)
        if overdue_only:
            query = query.where(
                TimelineTask.due_date < today,
                TimelineTask.status != TaskStatus.COMPLETED,
            )
        if upcoming_only:
            query = query.where(
                TimelineTask.due_date >= today,
                TimelineTask.due_date <= today + timedelta(days=upcoming_days),
                TimelineTask.status != TaskStatus.COMPLETED,
            )

        query = query.order_by(
            TimelineTask.due_date.asc().nullslast(),
            _PRIORITY_RANK.desc(),
            TimelineTask.id,
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_due_for_reminder(self, wedding_id: int, cutoff: date) -> List[TimelineTask]:
        result = await self.db.execute(
            select(TimelineTask)
            .where(
                TimelineTask.wedding_id == wedding_id,
                TimelineTask.due_date <= cutoff,
                TimelineTask.status.notin_([TaskStatus.COMPLETED, TaskStatus.CANCELLED]),
                TimelineTask.reminder_sent.is_(False),
            )
            .order_by(TimelineTask.due_date.asc(), TimelineTask.id)
        )
        return list(result.scalars().all())

    async def insert(self, **fields: Any) -> TimelineTask:
        task = TimelineTask(**fields)
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def update(self, task: TimelineTask, fields: Dict[str, Any]) -> TimelineTask:
        """Apply a partial update; the caller's transaction commits it"""
        for key, value in fields.items():
            setattr(task, key, value)
        task.updated_at = datetime.utcnow()
        await self.db.flush()
        return task

