from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from contextlib import asynccontextmanager
import config.conf as conf

DATABASE_URL = (
    f"postgresql+asyncpg://{conf.POSTGRES_USER}:{conf.POSTGRES_PASSWORD}"
    f"@{conf.POSTGRES_HOST}:{conf.POSTGRES_PORT}/{conf.POSTGRES_DB}"
)

# Async engine with pooling; no connection is opened until first use
async_engine = create_async_engine(DATABASE_URL, echo=conf.SQL_ECHO, pool_pre_ping=True)

# Session factory
AsyncSessionFactory = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,  # Keeps objects usable after commit
    autoflush=False,
    class_=AsyncSession
)

@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionFactory() as session:
        yield session
