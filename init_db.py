"""Initialize database tables"""
import asyncio
from wedding_timeline.database import create_tables, database_url
from wedding_timeline.models import *  # noqa: F401,F403 - Import all models to register them


async def init():
    await create_tables()
    print(f"Wedding timeline tables created at {database_url}")


if __name__ == "__main__":
    asyncio.run(init())
