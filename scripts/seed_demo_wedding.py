"""
Seed a demo wedding with a party, generated milestones and a few extra tasks
"""
import asyncio
from datetime import date, timedelta

from wedding_timeline.database import AsyncSessionLocal, create_tables, engine
from wedding_timeline.models.task import TaskCategory, TaskPhase, TaskPriority
from wedding_timeline.models.wedding import Wedding, PartyMember
from wedding_timeline.schemas import TaskCreate
from wedding_timeline.services.task_service import TaskService


async def seed_demo_wedding():
    """Create tables and a wedding 100 days out"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        wedding = Wedding(
            name="Demo Wedding",
            wedding_date=date.today() + timedelta(days=100),
            coordinator_email="coordinator@example.com",
        )
        session.add(wedding)
        await session.flush()

        party = [
            PartyMember(wedding_id=wedding.id, first_name="Daniel", last_name="Reed",
                        email="daniel@example.com", role="groom"),
            PartyMember(wedding_id=wedding.id, first_name="Marcus", last_name="Hale",
                        email="marcus@example.com", role="best_man"),
            PartyMember(wedding_id=wedding.id, first_name="Owen", last_name="Price",
                        role="groomsman"),
            PartyMember(wedding_id=wedding.id, first_name="Leo", last_name="Grant",
                        email="leo@example.com", role="groomsman"),
        ]
        session.add_all(party)
        await session.flush()

        service = TaskService(session)
        milestones = await service.create_milestone_tasks(wedding.id, party_size=len(party))
        measurements = next(t for t in milestones if t.category == TaskCategory.MEASUREMENTS)

        for member in party:
            await service.create_task(TaskCreate(
                wedding_id=wedding.id,
                task_name=f"Measurements for {member.full_name}",
                category=TaskCategory.MEASUREMENTS,
                phase=TaskPhase.MEASUREMENTS,
                priority=TaskPriority.HIGH,
                due_date=measurements.due_date,
                estimated_duration_hours=1,
                assigned_member_id=member.id,
            ))

        await session.commit()
        print(f"Seeded wedding {wedding.id} with {len(party)} members "
              f"and {len(milestones) + len(party)} tasks")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_wedding())
