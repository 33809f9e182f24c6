"""
Timeline task model - the unit of work tracked for a wedding
"""
from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Float, Boolean,
    ForeignKey, JSON, Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from wedding_timeline.database import Base


class TaskStatus(str, Enum):
    PENDING = "pending"
    BLOCKED = "blocked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskCategory(str, Enum):
    PLANNING = "planning"
    MEASUREMENTS = "measurements"
    SELECTION = "selection"
    ORDERS = "orders"
    FITTING = "fitting"
    PAYMENT = "payment"
    COMMUNICATION = "communication"
    DELIVERY = "delivery"
    MILESTONE = "milestone"
    OTHER = "other"


class TaskPhase(str, Enum):
    SETUP = "setup"
    PLANNING = "planning"
    MEASUREMENTS = "measurements"
    SELECTION = "selection"
    APPROVAL = "approval"
    ORDERS = "orders"
    PRODUCTION = "production"
    EXECUTION = "execution"
    COMPLETION = "completion"


DEFAULT_REMINDER_SCHEDULE = {
    "3_days_before": True,
    "1_day_before": True,
    "on_due_date": True,
}


class TimelineTask(Base):
    """A task on a wedding's timeline, optionally gated by prerequisite tasks"""
    __tablename__ = "wedding_timeline_tasks"

    id = Column(Integer, primary_key=True, index=True)
    wedding_id = Column(Integer, ForeignKey("weddings.id"), nullable=False, index=True)

    task_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(SQLEnum(TaskCategory, native_enum=False), nullable=False, default=TaskCategory.OTHER)
    phase = Column(SQLEnum(TaskPhase, native_enum=False), nullable=False, default=TaskPhase.PLANNING)
    priority = Column(SQLEnum(TaskPriority, native_enum=False), nullable=False, default=TaskPriority.MEDIUM)
    status = Column(SQLEnum(TaskStatus, native_enum=False), nullable=False, default=TaskStatus.PENDING)

    due_date = Column(Date, nullable=True)
    start_date = Column(Date, nullable=True)
    estimated_duration_hours = Column(Float, nullable=True)

    # IDs of tasks that must be completed before this one may start
    prerequisite_task_ids = Column(JSON, nullable=False, default=list)
    # Reverse pointer, only used for bottleneck reporting
    triggers_tasks = Column(JSON, nullable=False, default=list)

    assigned_to = Column(String, nullable=True)
    assigned_member_id = Column(Integer, ForeignKey("party_members.id"), nullable=True)
    auto_created = Column(Boolean, default=False)
    is_milestone = Column(Boolean, nullable=False, default=False)
    parent_task_id = Column(Integer, nullable=True)

    completion_percentage = Column(Integer, nullable=False, default=0)
    completion_notes = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    reminder_sent = Column(Boolean, nullable=False, default=False)
    last_reminder_sent_at = Column(DateTime, nullable=True)
    reminder_schedule = Column(JSON, nullable=True, default=lambda: dict(DEFAULT_REMINDER_SCHEDULE))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    wedding = relationship("Wedding", back_populates="tasks")
    assigned_member = relationship("PartyMember")
