"""Data access layer for request history.

This is the ONLY layer that talks to the database.
Every read is workspace-scoped; pruning is global.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from postline.db.models import HistoryEntryModel
from postline.types import DateRange, HistoryEntry, StatusFilter, utcnow


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_entry(row: HistoryEntryModel) -> HistoryEntry:
    return HistoryEntry(
        id=row.id,
        request_id=row.request_id,
        request_name=row.request_name,
        method=row.method,
        url=row.url,
        workspace_id=row.workspace_id,
        status_code=row.status_code,
        duration_ms=row.duration_ms or 0,
        response_size=row.response_size or 0,
        # SQLite drops tzinfo; stored values are always UTC
        timestamp=row.timestamp if row.timestamp.tzinfo else row.timestamp.replace(tzinfo=timezone.utc),
    )


class HistoryRepository:
    """All history database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, entry: HistoryEntry) -> HistoryEntry:
        """Persist one history entry."""
        row = HistoryEntryModel(
            id=entry.id,
            request_id=entry.request_id,
            request_name=entry.request_name,
            method=entry.method,
            url=entry.url,
            workspace_id=entry.workspace_id,
            status_code=entry.status_code,
            duration_ms=entry.duration_ms,
            response_size=entry.response_size,
            timestamp=entry.timestamp,
            searchable_url=entry.url.lower(),
            searchable_name=entry.request_name.lower(),
        )
        self.session.add(row)
        await self.session.commit()
        return entry

    async def fetch(self, workspace_id: str, limit: int = 100) -> list[HistoryEntry]:
        """Newest-first history for a workspace."""
        result = await self.session.execute(
            select(HistoryEntryModel)
            .where(HistoryEntryModel.workspace_id == workspace_id)
            .order_by(HistoryEntryModel.timestamp.desc())
            .limit(limit)
        )
        return [_to_entry(r) for r in result.scalars().all()]

    async def search(
        self,
        workspace_id: str,
        query: str = "",
        status_filter: Optional[StatusFilter] = None,
        date_range: Optional[DateRange] = None,
    ) -> list[HistoryEntry]:
        """Case-insensitive match on URL or request name, plus optional filters.

        Entries without a status code (failed sends) never match a status filter.
        """
        stmt = select(HistoryEntryModel).where(HistoryEntryModel.workspace_id == workspace_id)
        if query:
            needle = f"%{_escape_like(query.lower())}%"
            stmt = stmt.where(or_(
                HistoryEntryModel.searchable_url.like(needle, escape="\\"),
                HistoryEntryModel.searchable_name.like(needle, escape="\\"),
            ))
        if status_filter is not None:
            low, high = status_filter.bounds()
            stmt = stmt.where(
                HistoryEntryModel.status_code >= low,
                HistoryEntryModel.status_code < high,
            )
        if date_range is not None:
            stmt = stmt.where(
                HistoryEntryModel.timestamp >= date_range.start,
                HistoryEntryModel.timestamp <= date_range.end,
            )
        result = await self.session.execute(stmt.order_by(HistoryEntryModel.timestamp.desc()))
        return [_to_entry(r) for r in result.scalars().all()]

    async def clear(self, workspace_id: str) -> int:
        """Delete every entry of a workspace. Returns the number removed."""
        result = await self.session.execute(
            delete(HistoryEntryModel).where(HistoryEntryModel.workspace_id == workspace_id)
        )
        await self.session.commit()
        return result.rowcount or 0

    async def delete(self, entry_id: str) -> bool:
        result = await self.session.execute(
            delete(HistoryEntryModel).where(HistoryEntryModel.id == entry_id)
        )
        await self.session.commit()
        return bool(result.rowcount)

    async def count(self, workspace_id: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(HistoryEntryModel)
        if workspace_id is not None:
            stmt = stmt.where(HistoryEntryModel.workspace_id == workspace_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def prune(
        self,
        older_than_days: int = 30,
        max_entries: int = 1000,
        now: Optional[datetime] = None,
    ) -> int:
        """Drop entries older than the cutoff, then the oldest beyond *max_entries*.

        Returns the number of entries removed.
        """
        cutoff = (now or utcnow()) - timedelta(days=older_than_days)
        removed = await self.session.execute(
            delete(HistoryEntryModel).where(HistoryEntryModel.timestamp < cutoff)
        )
        total = removed.rowcount or 0

        overflow = await self.session.execute(
            select(HistoryEntryModel.id)
            .order_by(HistoryEntryModel.timestamp.desc())
            .offset(max_entries)
        )
        overflow_ids = list(overflow.scalars().all())
        if overflow_ids:
            result = await self.session.execute(
                delete(HistoryEntryModel).where(HistoryEntryModel.id.in_(overflow_ids))
            )
            total += result.rowcount or 0

        await self.session.commit()
        return total
