"""
Pydantic schemas shared by the engine services and the API routers
"""
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, AliasChoices, field_validator

from wedding_timeline.models.task import (
    TaskStatus, TaskPriority, TaskCategory, TaskPhase,
)


# --- Tasks ---

class TaskResponse(BaseModel):
    id: int
    wedding_id: int
    task_name: str
    description: Optional[str] = None
    category: TaskCategory
    phase: TaskPhase
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    estimated_duration_hours: Optional[float] = None
    prerequisite_task_ids: List[int] = []
    triggers_tasks: List[int] = []
    assigned_to: Optional[str] = None
    assigned_member_id: Optional[int] = None
    auto_created: Optional[bool] = False
    is_milestone: bool = False
    parent_task_id: Optional[int] = None
    completion_percentage: int = 0
    completion_notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    reminder_sent: bool = False
    last_reminder_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("prerequisite_task_ids", "triggers_tasks", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return list(v) if v else []

    @field_validator("reminder_sent", "auto_created", "is_milestone", mode="before")
    @classmethod
    def _none_to_false(cls, v):
        return bool(v)

    @field_validator("completion_percentage", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return v or 0

    # Unflushed records have no column defaults applied yet
    @field_validator("category", "phase", "priority", "status", mode="before")
    @classmethod
    def _apply_enum_defaults(cls, v, info):
        if v is not None:
            return v
        return {
            "category": TaskCategory.OTHER,
            "phase": TaskPhase.PLANNING,
            "priority": TaskPriority.MEDIUM,
            "status": TaskStatus.PENDING,
        }[info.field_name]


class TaskListItem(TaskResponse):
    is_overdue: bool = False
    days_until_due: Optional[int] = None


class TaskCreate(BaseModel):
    wedding_id: int
    task_name: str = Field(min_length=1)
    description: Optional[str] = None
    category: TaskCategory = TaskCategory.OTHER
    phase: TaskPhase = TaskPhase.PLANNING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    estimated_duration_hours: Optional[float] = Field(default=None, ge=0)
    prerequisite_task_ids: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("prerequisite_task_ids", "dependent_task_ids"),
    )
    assigned_to: Optional[str] = None
    assigned_member_id: Optional[int] = None
    auto_created: bool = False
    parent_task_id: Optional[int] = None
    reminder_schedule: Optional[Dict[str, bool]] = None


class TaskUpdate(BaseModel):
    task_name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    phase: Optional[TaskPhase] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    estimated_duration_hours: Optional[float] = Field(default=None, ge=0)
    prerequisite_task_ids: Optional[List[int]] = Field(
        default=None,
        validation_alias=AliasChoices("prerequisite_task_ids", "dependent_task_ids"),
    )
    assigned_to: Optional[str] = None
    assigned_member_id: Optional[int] = None
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    completion_notes: Optional[str] = None
    reminder_schedule: Optional[Dict[str, bool]] = None


class TaskFilters(BaseModel):
    status: Optional[TaskStatus] = None
    category: Optional[TaskCategory] = None
    priority: Optional[TaskPriority] = None
    overdue_only: bool = False
    upcoming_only: bool = False


class StatusChange(BaseModel):
    task_id: int
    previous_status: TaskStatus
    new_status: TaskStatus


class CompletionResult(BaseModel):
    task: TaskResponse
    status_changes: List[StatusChange] = []
    member_synced: bool = False


class BulkCreateResult(BaseModel):
    success: bool
    task: Optional[TaskResponse] = None
    error: Optional[str] = None
    task_name: Optional[str] = None


class BulkCreateResponse(BaseModel):
    created_count: int
    total_attempts: int
    results: List[BulkCreateResult]


# --- Timeline view ---

class PhaseBucket(BaseModel):
    name: str
    tasks: List[TaskResponse] = []
    total: int = 0
    completed: int = 0
    progress: int = 0


class TimelineView(BaseModel):
    wedding_id: Optional[int] = None
    phases: Dict[str, PhaseBucket]
    overall_progress: int
    critical_tasks: List[TaskResponse]
    overdue_tasks: List[TaskResponse]
    upcoming_tasks: List[TaskResponse]
    generated_for: date


# --- Critical path ---

class Bottleneck(BaseModel):
    task_id: int
    task_name: str
    blocking_count: int
    reason: str


class RiskFactor(BaseModel):
    type: Literal["overdue", "urgent"]
    task_id: int
    task_name: str
    days_overdue: Optional[int] = None
    days_remaining: Optional[int] = None


class CriticalPathReport(BaseModel):
    critical_tasks: List[TaskResponse]
    estimated_total_hours: float
    estimated_completion_date: Optional[date] = None
    bottlenecks: List[Bottleneck]
    risk_factors: List[RiskFactor]
    longest_path: List[int] = []
    longest_path_hours: float = 0
    cyclic_task_ids: List[int] = []


# --- Dependency checks ---

class DependencyViolation(BaseModel):
    type: Literal["self_reference", "missing_prerequisite", "cycle", "due_before_prerequisite"]
    task_id: int
    task_name: str
    prerequisite_id: Optional[int] = None
    detail: str


class ConflictReport(BaseModel):
    dependency_violations: List[DependencyViolation]
    requires_manual_review: bool


# --- Milestones ---

class Milestone(BaseModel):
    offset_days: int
    name: str
    description: str
    due_date: date
    priority: TaskPriority
    category: TaskCategory
    phase: TaskPhase
    estimated_duration_days: int


class CriticalDeadline(BaseModel):
    name: str
    date: date
    criticality: TaskPriority
    requirements: List[str]


class MilestonePlan(BaseModel):
    wedding_date: date
    days_until_wedding: int
    party_size: int
    complexity_level: Literal["low", "standard", "high"]
    milestones: List[Milestone]
    critical_deadlines: List[CriticalDeadline]


# --- Analytics ---

class UpcomingDeadline(BaseModel):
    task_id: int
    task_name: str
    due_date: date
    priority: TaskPriority
    days_remaining: int


class TaskAnalytics(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    overdue_tasks: int
    completion_rate: int
    category_breakdown: Dict[str, int]
    priority_breakdown: Dict[str, int]
    status_breakdown: Dict[str, int]
    average_completion_time: int
    upcoming_deadlines: List[UpcomingDeadline]


# --- Reminders ---

class ReminderResult(BaseModel):
    task_id: int
    success: bool
    error: Optional[str] = None


class ReminderSummary(BaseModel):
    reminders_sent: int
    total_attempts: int
    results: List[ReminderResult]


# --- AI recommendations ---

class Recommendation(BaseModel):
    source: Literal["model", "fallback"]
    summary: str
    risk_level: Literal["low", "medium", "high"]
    recommendations: List[str]
    generated_at: datetime


# --- Progress report ---

RiskLevel = Literal["low", "medium", "high"]


class WeddingOverview(BaseModel):
    wedding_id: int
    wedding_date: date
    days_remaining: int
    overall_progress: int
    current_phase: str


class OutstandingMember(BaseModel):
    id: int
    name: str
    role: Optional[str] = None
    measurements_status: str


class PartyProgress(BaseModel):
    total_members: int
    measurements_completed: int
    measurements_percentage: int
    outfits_confirmed: int
    payments_received: int
    outstanding_members: List[OutstandingMember]


class TaskProgress(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    overdue_tasks: int


class TimelineHealth(BaseModel):
    on_schedule: bool
    risk_level: RiskLevel
    critical_deadlines: List[UpcomingDeadline]
    recommendations: List[str]


class ProgressReport(BaseModel):
    wedding_overview: WeddingOverview
    party_progress: PartyProgress
    task_progress: TaskProgress
    timeline_health: TimelineHealth
    generated_at: datetime


# --- Action dispatch ---

class ActionRequest(BaseModel):
    action: str
    wedding_id: Optional[int] = None
    task_id: Optional[int] = None
    member_id: Optional[int] = None
    task_data: Optional[Dict[str, Any]] = None
    filters: Optional[Dict[str, Any]] = None
