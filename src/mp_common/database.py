"""Async engine and per-request sessions.

Most tables are reached through raw ``text()`` SQL in the infrastructure
repositories; only ``users`` is ORM-mapped, hence the declarative Base.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# Services commit explicitly; keep loaded rows readable after commit
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def marketplace_state_seeded() -> bool:
    """True once migrations have created and seeded the singleton state row."""
    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT to_regclass('marketplace_state') IS NOT NULL")
        )
        if not result.scalar_one():
            return False
        result = await conn.execute(text("SELECT COUNT(*) FROM marketplace_state WHERE id = 1"))
        return bool(result.scalar_one())
