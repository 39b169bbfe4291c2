"""HistoryRecorder — fire-and-forget logging of send outcomes.

``record`` is called after the transport outcome is known. Its failures are
logged and swallowed; a broken history database must never change what the
user sees for a request that already completed.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from postline.config import PostlineConfig, config as default_config
from postline.db.database import create_engine, create_session_factory, init_db
from postline.db.repository import HistoryRepository
from postline.exceptions import HistoryError
from postline.types import DateRange, HistoryEntry, HTTPResponse, StatusFilter

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Writes and queries history entries through :class:`HistoryRepository`.

    Args:
        session_factory: Async session factory bound to an initialised engine.
        settings: Source of the pruning defaults.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[PostlineConfig] = None,
    ) -> None:
        self._sessions = session_factory
        self._settings = settings or default_config

    @classmethod
    async def open(cls, settings: Optional[PostlineConfig] = None, url: Optional[str] = None) -> tuple["HistoryRecorder", AsyncEngine]:
        """Create the engine, make sure the schema exists, return (recorder, engine).

        The caller owns the engine and should ``await engine.dispose()`` when done.
        If the schema cannot be created the engine is disposed and the error
        (usually SQLAlchemyError) propagates.
        """
        engine = create_engine(settings, url)
        try:
            await init_db(engine)
        except Exception:
            await engine.dispose()
            raise
        return cls(create_session_factory(engine), settings), engine

    async def record(
        self,
        *,
        request_id: str,
        request_name: str,
        method: str,
        url: str,
        workspace_id: str,
        response: Optional[HTTPResponse] = None,
    ) -> Optional[HistoryEntry]:
        """Persist one outcome. ``response=None`` records a failed send.

        Returns the stored entry, or None if the write failed.
        """
        entry = HistoryEntry(
            request_id=request_id,
            request_name=request_name,
            method=method,
            url=url,
            workspace_id=workspace_id,
        )
        if response is not None:
            entry.status_code = response.status_code
            entry.duration_ms = response.duration_ms
            entry.response_size = response.size

        try:
            async with self._sessions() as session:
                await HistoryRepository(session).add(entry)
        except Exception:
            logger.warning("Failed to save history entry for request %s", request_id, exc_info=True)
            return None
        return entry

    async def fetch(self, workspace_id: str, limit: int = 100) -> list[HistoryEntry]:
        async with self._guard("fetch") as repo:
            return await repo.fetch(workspace_id, limit)

    async def search(
        self,
        workspace_id: str,
        query: str = "",
        status_filter: Optional[StatusFilter] = None,
        date_range: Optional[DateRange] = None,
    ) -> list[HistoryEntry]:
        async with self._guard("search") as repo:
            return await repo.search(workspace_id, query, status_filter, date_range)

    async def clear(self, workspace_id: str) -> int:
        async with self._guard("clear") as repo:
            return await repo.clear(workspace_id)

    async def delete(self, entry_id: str) -> bool:
        async with self._guard("delete") as repo:
            return await repo.delete(entry_id)

    async def prune(
        self,
        older_than_days: Optional[int] = None,
        max_entries: Optional[int] = None,
    ) -> int:
        """Apply retention; defaults come from settings."""
        days = older_than_days if older_than_days is not None else self._settings.history_retention_days
        cap = max_entries if max_entries is not None else self._settings.history_max_entries
        async with self._guard("prune") as repo:
            removed = await repo.prune(days, cap)
        logger.info("Pruned %d history entries (retention %d days, cap %d)", removed, days, cap)
        return removed

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[HistoryRepository]:
        """Yield a repository on a fresh session; SQLAlchemy errors become HistoryError."""
        async with self._sessions() as session:
            try:
                yield HistoryRepository(session)
            except SQLAlchemyError as exc:
                raise HistoryError(f"History {operation} failed: {exc}") from exc
