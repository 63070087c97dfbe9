"""SQLAlchemy async session configuration.

This module provides:
- Async engine creation
- Async session factory
- Database initialization and quest seeding
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from companion.core.config import settings
from companion.db.models import Base, QuestModel


# Quests every fresh store starts with
SEED_QUESTS: list[dict] = [
    {
        "id": 1,
        "name": "First Bond",
        "description": "Say 3 things you love.",
        "reward": "New pose",
        "pattern": "love|like",
    },
]


# Create async engine
engine: AsyncEngine = create_async_engine(
    settings.database.url,
    echo=settings.database.echo,
    future=True,
)

# Create async session factory
async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def seed_quests(factory: async_sessionmaker[AsyncSession]) -> None:
    """Insert the seed quests that are missing. Existing rows are untouched."""
    async with factory() as session:
        for data in SEED_QUESTS:
            existing = await session.execute(select(QuestModel).where(QuestModel.id == data["id"]))
            if existing.scalar_one_or_none() is None:
                session.add(QuestModel(**data))
        await session.commit()


async def init_db(
    bind: AsyncEngine | None = None,
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """Initialize the database by creating all tables and seeding quests.

    Should be called during application startup.
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_quests(factory or async_session_factory)


async def close_db() -> None:
    """Close the database engine.

    Should be called during application shutdown.
    """
    await engine.dispose()
