"""Async SQLAlchemy engine and session factory for the history store."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from postline.config import PostlineConfig, config as default_config


def create_engine(settings: Optional[PostlineConfig] = None, url: Optional[str] = None) -> AsyncEngine:
    cfg = settings or default_config
    return create_async_engine(url or cfg.database_url, echo=cfg.debug)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Safe to call on every start."""
    from postline.db.models import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
