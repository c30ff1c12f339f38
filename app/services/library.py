"""Per-profile watchlist and watched-list storage."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import WatchRecordRow
from ..grouping import group_season_records
from ..models import (
    GroupedDisplayRecord,
    LibraryList,
    SeasonRecord,
    WatchRecordIn,
    WatchRecordKey,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LibraryService:
    """Stores titles a profile wants to watch or has already watched."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def save(
        self, profile_id: str, list_name: LibraryList, entry: WatchRecordIn
    ) -> SeasonRecord:
        """Insert the entry or refresh the existing row for the same title/season.

        Concurrent saves of the same entry race on ``uq_watch_record_entry``;
        the loser rolls back and refreshes the row the winner inserted.
        """

        season = entry.season_number or 0
        now = self._clock()
        async with self._session_factory() as session:
            row = await self._find(session, profile_id, list_name, entry, season)
            if row is None:
                row = WatchRecordRow(
                    profile_id=profile_id,
                    list_name=list_name.value,
                    content_id=entry.content_id,
                    media_type=entry.media_type,
                    season_number=season,
                    title=entry.title,
                    poster_path=entry.poster_path,
                    rating=entry.rating,
                    activity_at=now,
                )
                session.add(row)
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    logger.debug(
                        "Concurrent insert of %s %s for profile %s; updating instead",
                        entry.media_type,
                        entry.content_id,
                        profile_id,
                    )
                    row = await self._find(session, profile_id, list_name, entry, season)
                    if row is None:
                        raise
                    self._refresh(row, entry, now)
                    await session.commit()
            else:
                self._refresh(row, entry, now)
                await session.commit()
            logger.info(
                "Saved %s %s to %s for profile %s",
                entry.media_type,
                entry.content_id,
                list_name.value,
                profile_id,
            )
            return self._to_record(row)

    @staticmethod
    async def _find(
        session: AsyncSession,
        profile_id: str,
        list_name: LibraryList,
        entry: WatchRecordIn,
        season: int,
    ) -> WatchRecordRow | None:
        result = await session.execute(
            select(WatchRecordRow).where(
                WatchRecordRow.profile_id == profile_id,
                WatchRecordRow.list_name == list_name.value,
                WatchRecordRow.content_id == entry.content_id,
                WatchRecordRow.media_type == entry.media_type,
                WatchRecordRow.season_number == season,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _refresh(row: WatchRecordRow, entry: WatchRecordIn, now: datetime) -> None:
        row.title = entry.title
        row.poster_path = entry.poster_path
        row.rating = entry.rating
        row.activity_at = now

    async def remove(
        self, profile_id: str, list_name: LibraryList, key: WatchRecordKey
    ) -> bool:
        """Delete a single row, returning ``False`` when nothing matched."""

        async with self._session_factory() as session:
            result = await session.execute(
                delete(WatchRecordRow).where(
                    WatchRecordRow.profile_id == profile_id,
                    WatchRecordRow.list_name == list_name.value,
                    WatchRecordRow.content_id == key.content_id,
                    WatchRecordRow.media_type == key.media_type,
                    WatchRecordRow.season_number == (key.season_number or 0),
                )
            )
            await session.commit()
        return bool(result.rowcount)

    async def list_records(
        self, profile_id: str, list_name: LibraryList, *, limit: int | None = None
    ) -> list[SeasonRecord]:
        """Return the profile's rows for one list, most recent activity first."""

        statement = (
            select(WatchRecordRow)
            .where(
                WatchRecordRow.profile_id == profile_id,
                WatchRecordRow.list_name == list_name.value,
            )
            .order_by(WatchRecordRow.activity_at.desc(), WatchRecordRow.id.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            rows = result.scalars().all()
        return [self._to_record(row) for row in rows]

    async def list_grouped(
        self, profile_id: str, list_name: LibraryList
    ) -> list[GroupedDisplayRecord]:
        """Return the list with per-season rows collapsed into one entry per title."""

        return group_season_records(await self.list_records(profile_id, list_name))

    @staticmethod
    def _to_record(row: WatchRecordRow) -> SeasonRecord:
        return SeasonRecord(
            content_id=row.content_id,
            media_type=row.media_type,
            title=row.title,
            season_number=row.season_number or None,
            activity_at=row.activity_at,
            poster_path=row.poster_path,
            rating=row.rating,
        )
