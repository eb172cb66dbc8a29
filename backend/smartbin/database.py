"""Async SQLAlchemy database setup."""

from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from smartbin.config import DATABASE_PATH


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_database_url(path: str = DATABASE_PATH) -> str:
    """Get the SQLite database URL, ensuring the data directory exists."""
    db_path = Path(path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{db_path.resolve()}"


engine = create_async_engine(
    get_database_url(),
    echo=False,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create all tables that do not exist yet."""
    # Register every model on the metadata before create_all
    import smartbin.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        yield session


def get_session():
    """Context manager for getting async database sessions outside of FastAPI routes."""
    return async_session()


def utc_now() -> datetime:
    """Naive UTC now, the form SQLite stores."""
    return datetime.now(UTC).replace(tzinfo=None)
