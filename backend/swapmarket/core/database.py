"""Database engine, session factory and declarative base"""

import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from swapmarket.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all models"""
    pass


def utc_now() -> datetime:
    """Current UTC time without tzinfo (columns are timestamp without time zone)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request"""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def seed_roles(session: AsyncSession) -> None:
    """Insert the built-in roles if they are missing"""
    from swapmarket.models.user import Role, RoleName

    result = await session.execute(select(Role.name))
    existing = set(result.scalars().all())
    for role in RoleName:
        if role.value not in existing:
            session.add(Role(name=role.value))
    await session.commit()


async def init_db() -> None:
    """Create all tables and seed reference rows"""
    import swapmarket.models  # noqa: F401  registers every model on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        await seed_roles(session)
    logger.info("Database initialized")


async def close_db() -> None:
    """Dispose of the connection pool"""
    await engine.dispose()
