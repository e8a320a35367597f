from collections.abc import AsyncGenerator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

engine = create_async_engine(settings.db_url, echo=settings.is_dev)


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with AsyncSession(
        engine, autocommit=False, autoflush=False, expire_on_commit=False
    ) as session:
        yield session


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    # Table models register themselves on SQLModel.metadata at import time
    from app.models import battle, tournament, user  # noqa: F401, PLC0415

    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables ready")
