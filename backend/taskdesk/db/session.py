"""Async engine, session factory, and schema bootstrap for the task store."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from alembic.config import Config
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk import models as _models
from taskdesk.core.config import settings
from taskdesk.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Importing the package registers every table on SQLModel.metadata.
_MODEL_REGISTRY = _models

BACKEND_ROOT = Path(__file__).resolve().parents[2]
MIGRATIONS_DIR = BACKEND_ROOT / "migrations"

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+psycopg",
    "postgres": "postgresql+psycopg",
    "sqlite": "sqlite+aiosqlite",
}

logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Rewrite bare driver schemes to their async dialect equivalents."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    return f"{_ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


def build_engine(database_url: str) -> AsyncEngine:
    url = normalize_database_url(database_url)
    return create_async_engine(url, **_engine_options(url))


async_engine: AsyncEngine = build_engine(settings.database_url)
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def _alembic_config() -> Config:
    alembic_cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations() -> None:
    """Upgrade the schema to the latest Alembic revision."""
    from alembic import command

    logger.info("db.migrations.start")
    command.upgrade(_alembic_config(), "head")
    logger.info("db.migrations.complete")


async def init_db() -> None:
    """Create or migrate the schema on startup."""
    if settings.db_auto_migrate and any((MIGRATIONS_DIR / "versions").glob("*.py")):
        await asyncio.to_thread(run_migrations)
        return
    if settings.db_auto_migrate:
        logger.warning("db.migrations.missing falling back to create_all")

    async with async_engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("db.create_all.complete", extra={"tables": len(SQLModel.metadata.tables)})


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session; roll back whatever the request left open."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            try:
                if session.in_transaction():
                    await session.rollback()
            except SQLAlchemyError:
                logger.exception("db.session.rollback_failed")
