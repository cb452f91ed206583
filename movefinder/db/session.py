import logging
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from movefinder.core.config import settings
from movefinder.models.base import Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_dir(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str):
    _ensure_sqlite_dir(database_url)
    engine = create_async_engine(database_url, future=True, echo=False)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables and, when enabled, seed the default pricing rules."""
    from movefinder.models import customer, quote, detected_item, media_file, quote_history, pricing_rule  # noqa: F401
    from movefinder.services.pricing_rules import seed_default_rules

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")

    if settings.SEED_PRICING_RULES:
        async with async_session_factory() as session:
            created = await seed_default_rules(session)
            await session.commit()
            logger.info(f"Pricing rules seeded ({created} new)")


async def close_db() -> None:
    await engine.dispose()
