from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config import Settings, get_settings

settings = get_settings()


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for create_async_engine, including pool bounds."""
    options: dict[str, Any] = {"echo": settings.debug, "future": True}
    if settings.is_sqlite:
        # aiosqlite picks its own pool; queue sizing does not apply.
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,  # Verify connection health before use
    )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Initialize database tables."""
    # Import models so their tables are registered on the metadata.
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
