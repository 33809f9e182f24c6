from wedding_timeline.models.wedding import Wedding, PartyMember
from wedding_timeline.models.task import (
    TimelineTask, TaskStatus, TaskPriority, TaskCategory, TaskPhase,
)

__all__ = [
    "Wedding",
    "PartyMember",
    "TimelineTask",
    "TaskStatus",
    "TaskPriority",
    "TaskCategory",
    "TaskPhase",
]
