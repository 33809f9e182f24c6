"""
Milestone generation - fixed planning checkpoints counted back from the wedding date
"""
import math
from datetime import date, timedelta
from typing import List, Optional

from wedding_timeline.models.task import TaskCategory, TaskPhase, TaskPriority
from wedding_timeline.schemas import CriticalDeadline, Milestone, MilestonePlan

MILESTONE_OFFSETS = (90, 60, 45, 30, 14, 7, 1)

# offset -> (name, description, category, phase)
MILESTONE_TABLE = {
    90: ("Initial Planning Complete",
         "All party members invited and initial planning completed",
         TaskCategory.PLANNING, TaskPhase.PLANNING),
    60: ("Measurements Collection Deadline",
         "All measurements collected and validated",
         TaskCategory.MEASUREMENTS, TaskPhase.MEASUREMENTS),
    45: ("Outfit Selection Finalized",
         "All outfit selections confirmed",
         TaskCategory.SELECTION, TaskPhase.SELECTION),
    30: ("Orders Placed",
         "All orders placed with vendors",
         TaskCategory.ORDERS, TaskPhase.ORDERS),
    14: ("Final Fittings",
         "Final fittings completed",
         TaskCategory.FITTING, TaskPhase.PRODUCTION),
    7: ("Final Preparations",
        "All items received and final preparations",
        TaskCategory.DELIVERY, TaskPhase.EXECUTION),
    1: ("Wedding Day Ready",
        "Everything ready for wedding day",
        TaskCategory.MILESTONE, TaskPhase.COMPLETION),
}

CRITICAL_DEADLINE_OFFSETS = (60, 30, 14)

CRITICAL_REQUIREMENTS = {
    60: ["All measurements collected", "Measurement validation complete"],
    30: ["All orders confirmed", "Payment processing complete"],
    14: ["All items received", "Final fittings scheduled"],
}


def milestone_priority(offset_days: int) -> TaskPriority:
    if offset_days <= 14:
        return TaskPriority.CRITICAL
    if offset_days <= 30:
        return TaskPriority.HIGH
    return TaskPriority.MEDIUM


def milestone_duration_days(offset_days: int, party_size: int) -> int:
    """Larger parties need longer; the last two weeks take twice as long"""
    base = math.ceil(max(party_size, 0) / 3)
    return base * 2 if offset_days <= 14 else base


def generate_milestones(wedding_date: date, party_size: int = 3) -> List[Milestone]:
    milestones = []
    for offset in MILESTONE_OFFSETS:
        name, description, category, phase = MILESTONE_TABLE[offset]
        milestones.append(Milestone(
            offset_days=offset,
            name=name,
            description=description,
            due_date=wedding_date - timedelta(days=offset),
            priority=milestone_priority(offset),
            category=category,
            phase=phase,
            estimated_duration_days=milestone_duration_days(offset, party_size),
        ))
    return milestones


def determine_complexity(party_size: int, days_until_wedding: int) -> str:
    if party_size > 8 or days_until_wedding < 60:
        return "high"
    if party_size < 4 and days_until_wedding > 120:
        return "low"
    return "standard"


def critical_deadlines(wedding_date: date) -> List[CriticalDeadline]:
    return [
        CriticalDeadline(
            name=f"{offset} Days Before Wedding",
            date=wedding_date - timedelta(days=offset),
            criticality=TaskPriority.CRITICAL if offset <= 14 else TaskPriority.HIGH,
            requirements=CRITICAL_REQUIREMENTS[offset],
        )
        for offset in CRITICAL_DEADLINE_OFFSETS
    ]


def build_milestone_plan(
    wedding_date: date,
    party_size: int = 3,
    today: Optional[date] = None,
) -> MilestonePlan:
    today = today or date.today()
    days_left = (wedding_date - today).days
    return MilestonePlan(
        wedding_date=wedding_date,
        days_until_wedding=days_left,
        party_size=party_size,
        complexity_level=determine_complexity(party_size, days_left),
        milestones=generate_milestones(wedding_date, party_size),
        critical_deadlines=critical_deadlines(wedding_date),
    )
