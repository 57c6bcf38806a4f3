"""Async database session and engine (SQLAlchemy 2.0 + asyncpg)."""
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from newslatch.config import Settings, get_settings

settings = get_settings()


def engine_options(config: Settings) -> dict[str, Any]:
    """Pool chỉ áp dụng cho Postgres; sqlite+aiosqlite (test) dùng pool mặc định."""
    options: dict[str, Any] = {"echo": config.db_echo}
    if not config.database_url.startswith("sqlite"):
        options.update(pool_size=config.db_pool_size, pool_pre_ping=True)
    return options


# Cùng URL với Alembic (postgresql+asyncpg://...).
engine = create_async_engine(settings.database_url, **engine_options(settings))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for all models."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Một session cho mỗi request. Commit khi handler xong, rollback khi có lỗi
    (credit đã trừ trong request lỗi sẽ được hoàn lại).
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def utcnow() -> datetime:
    """Timezone-aware now (UTC) cho default của timestamp columns."""
    return datetime.now(timezone.utc)
