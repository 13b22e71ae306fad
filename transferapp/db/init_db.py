import sys
import asyncio
import logging

from db.models import Base
from db.db import async_engine

logger = logging.getLogger(__name__)

async def init_db():
    try:
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(init_db())
