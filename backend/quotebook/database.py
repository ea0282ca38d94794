"""Database engine, session factory, and declarative base.

Every document and reference-entity table carries a `user_id` column;
rows are scoped to their owner in every query rather than per schema.

Session dependency for FastAPI:
  - get_db()  → yields a session, commits on success, rolls back on error
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from quotebook.config import settings


def _engine_options(url: str) -> dict:
    # SQLite (used for local tooling) does not accept pool sizing arguments.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all owner-scoped tables."""
    pass


async def get_db() -> AsyncSession:
    """Yield a session for the current request."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create any missing tables (dev / first boot)."""
    import quotebook.models  # noqa: F401  (registers every model on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
