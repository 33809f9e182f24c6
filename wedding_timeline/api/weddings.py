"""
Wedding API endpoints - weddings, party members and milestone generation
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field

from wedding_timeline.database import get_db
from wedding_timeline.models.wedding import Wedding, PartyMember
from wedding_timeline.schemas import MilestonePlan, TaskResponse
from wedding_timeline.services.milestones import build_milestone_plan
from wedding_timeline.services.task_service import TaskService

router = APIRouter()

DEFAULT_PARTY_SIZE = 3


# --- Pydantic Schemas ---

class WeddingCreate(BaseModel):
    name: str = Field(min_length=1)
    wedding_date: date
    coordinator_email: Optional[str] = None


class WeddingResponse(BaseModel):
    id: int
    name: str
    wedding_date: date
    coordinator_email: Optional[str]
    completion_percentage: int = 0
    current_phase: str = "planning"
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class MemberResponse(BaseModel):
    id: int
    wedding_id: int
    first_name: str
    last_name: Optional[str]
    email: Optional[str]
    role: Optional[str]
    measurements_status: str
    outfit_status: str
    payment_status: str

    class Config:
        from_attributes = True


class MilestoneRequest(BaseModel):
    party_size: Optional[int] = Field(default=None, ge=0)
    chain: bool = True


# --- Helper ---

async def _party_size(db: AsyncSession, wedding_id: int, requested: Optional[int]) -> int:
    """Explicit size wins, otherwise the number of registered members"""
    if requested is not None:
        return requested
    result = await db.execute(
        select(func.count(PartyMember.id)).where(PartyMember.wedding_id == wedding_id)
    )
    return result.scalar() or DEFAULT_PARTY_SIZE


# --- Endpoints ---

@router.post("/", response_model=WeddingResponse)
async def create_wedding(data: WeddingCreate, db: AsyncSession = Depends(get_db)):
    wedding = Wedding(**data.model_dump(exclude_none=True))
    db.add(wedding)
    await db.flush()
    await db.refresh(wedding)
    return wedding


@router.get("/{wedding_id}", response_model=WeddingResponse)
async def get_wedding(wedding_id: int, db: AsyncSession = Depends(get_db)):
    return await TaskService(db).get_wedding(wedding_id)


@router.post("/{wedding_id}/members", response_model=MemberResponse)
async def add_member(wedding_id: int, data: MemberCreate, db: AsyncSession = Depends(get_db)):
    await TaskService(db).get_wedding(wedding_id)
    member = PartyMember(wedding_id=wedding_id, **data.model_dump(exclude_none=True))
    db.add(member)
    await db.flush()
    await db.refresh(member)
    return member


@router.get("/{wedding_id}/members", response_model=List[MemberResponse])
async def list_members(wedding_id: int, db: AsyncSession = Depends(get_db)):
    service = TaskService(db)
    await service.get_wedding(wedding_id)
    return await service.list_members(wedding_id)


@router.post("/{wedding_id}/milestones", response_model=List[TaskResponse])
async def generate_milestone_tasks(
    wedding_id: int,
    data: Optional[MilestoneRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Persist the standard milestones as tasks, chained in date order"""
    data = data or MilestoneRequest()
    service = TaskService(db)
    await service.get_wedding(wedding_id)
    party_size = await _party_size(db, wedding_id, data.party_size)
    tasks = await service.create_milestone_tasks(wedding_id, party_size=party_size, chain=data.chain)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/{wedding_id}/milestones/preview", response_model=MilestonePlan)
async def preview_milestones(
    wedding_id: int,
    party_size: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    wedding = await TaskService(db).get_wedding(wedding_id)
    size = await _party_size(db, wedding_id, party_size)
    return build_milestone_plan(wedding.wedding_date, party_size=size)
