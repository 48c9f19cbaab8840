from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import event
from contextlib import asynccontextmanager
from core.config import settings
import logging
from typing import AsyncIterator, Optional

Base = declarative_base()
logger = logging.getLogger("dyor_hub.db")


def build_engine_options(url: str) -> dict:
    """Pool options for ``url``; SQLite rejects sizing and connect timeouts."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": settings.DB_PRE_PING,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "connect_args": {"timeout": settings.DB_CONNECT_TIMEOUT},
    }


engine = create_async_engine(
    settings.async_database_url,
    echo=False,
    **build_engine_options(settings.async_database_url),
)

SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, rolled back on error."""
    async with SessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise


@asynccontextmanager
async def get_or_use_session(db: Optional[AsyncSession]):
    """Yield the caller's session untouched, or open (and close) a fresh one.

    Services accept an optional session so a request can share one unit of
    work across calls, while scripts and listeners can call them bare.
    """
    if db is not None:
        yield db
        return
    async with SessionLocal() as new_db:
        try:
            yield new_db
        except Exception:
            await new_db.rollback()
            raise


@event.listens_for(engine.sync_engine, "checkout")
def _on_checkout(dbapi_connection, connection_record, connection_proxy):
    logger.debug("DB checkout: id=%s", id(connection_record))


@event.listens_for(engine.sync_engine, "checkin")
def _on_checkin(dbapi_connection, connection_record):
    logger.debug("DB checkin: id=%s", id(connection_record))
