import logging
import random
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, select, update

from .models import MusicHistoryEntry, MusicQueueEntry, QueueStatus

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255


class QueueStore:
    """Durable per-guild queue and play history.

    Every call runs in its own session from the database manager, so each
    operation is atomic on its own. Status transitions are decided by the
    scheduler; the store only keeps CURRENT unique through ``promote_to_current``.
    """

    def __init__(self, db: Any) -> None:
        self.db = db

    async def enqueue(self, guild_id: int, user_id: int, blob: str, title: str) -> int:
        row_ids = await self.enqueue_many(guild_id, user_id, [(blob, title)])
        return row_ids[0]

    async def enqueue_many(self, guild_id: int, user_id: int, entries: Sequence[tuple[str, str]]) -> list[int]:
        """Append QUEUED rows contiguously, in the given order."""
        if not entries:
            return []

        async with self.db.session() as session:
            result = await session.execute(
                select(func.coalesce(func.max(MusicQueueEntry.position), 0)).where(
                    MusicQueueEntry.guild_id == guild_id
                )
            )
            next_position = result.scalar_one() + 1

            rows = []
            for offset, (blob, title) in enumerate(entries):
                row = MusicQueueEntry(
                    guild_id=guild_id,
                    user_id=user_id,
                    track_blob=blob,
                    status=QueueStatus.QUEUED.value,
                    title=(title or "Unknown title")[:TITLE_MAX_LENGTH],
                    recycled=False,
                    position=next_position + offset,
                )
                session.add(row)
                rows.append(row)

            await session.flush()
            row_ids = [row.id for row in rows]

        logger.debug(f"Enqueued {len(row_ids)} track(s) for guild {guild_id}")
        return row_ids

    async def get(self, row_id: int) -> MusicQueueEntry | None:
        async with self.db.session() as session:
            return await session.get(MusicQueueEntry, row_id)

    async def current_of(self, guild_id: int) -> MusicQueueEntry | None:
        rows = await self.list_by_status(guild_id, QueueStatus.CURRENT)
        return rows[0] if rows else None

    async def list_by_status(self, guild_id: int, status: QueueStatus) -> list[MusicQueueEntry]:
        async with self.db.session() as session:
            result = await session.execute(
                select(MusicQueueEntry)
                .where(MusicQueueEntry.guild_id == guild_id, MusicQueueEntry.status == status.value)
                .order_by(MusicQueueEntry.position, MusicQueueEntry.id)
            )
            return list(result.scalars().all())

    async def list_queued(self, guild_id: int, limit: int | None = None) -> list[MusicQueueEntry]:
        async with self.db.session() as session:
            stmt = (
                select(MusicQueueEntry)
                .where(MusicQueueEntry.guild_id == guild_id, MusicQueueEntry.status == QueueStatus.QUEUED.value)
                .order_by(MusicQueueEntry.position, MusicQueueEntry.id)
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count_queued(self, guild_id: int) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(MusicQueueEntry.id)).where(
                    MusicQueueEntry.guild_id == guild_id,
                    MusicQueueEntry.status == QueueStatus.QUEUED.value,
                )
            )
            return result.scalar_one()

    async def peek_next(self, guild_id: int, shuffle: bool = False) -> MusicQueueEntry | None:
        """Head of the QUEUED ordering, or a uniformly random QUEUED row when shuffling."""
        if shuffle:
            queued = await self.list_queued(guild_id)
            return random.choice(queued) if queued else None

        queued = await self.list_queued(guild_id, limit=1)
        return queued[0] if queued else None

    async def set_status(self, row_id: int, status: QueueStatus, recycled: bool | None = None) -> bool:
        values: dict[str, Any] = {"status": status.value}
        if recycled is not None:
            values["recycled"] = recycled

        async with self.db.session() as session:
            result = await session.execute(
                update(MusicQueueEntry).where(MusicQueueEntry.id == row_id).values(**values)
            )
            return result.rowcount > 0

    async def promote_to_current(self, row_id: int) -> MusicQueueEntry | None:
        """Make ``row_id`` the guild's only CURRENT row."""
        async with self.db.session() as session:
            row = await session.get(MusicQueueEntry, row_id)
            if row is None:
                return None

            result = await session.execute(
                update(MusicQueueEntry)
                .where(
                    MusicQueueEntry.guild_id == row.guild_id,
                    MusicQueueEntry.status == QueueStatus.CURRENT.value,
                    MusicQueueEntry.id != row_id,
                )
                .values(status=QueueStatus.PLAYED.value)
            )
            if result.rowcount:
                logger.warning(f"Demoted {result.rowcount} stale CURRENT row(s) in guild {row.guild_id}")

            row.status = QueueStatus.CURRENT.value
            return row

    async def remove_queued(self, guild_id: int, position: int) -> MusicQueueEntry | None:
        """Delete the QUEUED row at 1-based ``position``. Returns the removed row."""
        async with self.db.session() as session:
            queued = await self._queued_rows(session, guild_id)
            if not 1 <= position <= len(queued):
                return None

            row = queued[position - 1]
            await session.delete(row)
            return row

    async def move_queued(self, guild_id: int, from_position: int, to_position: int) -> bool:
        """Move a QUEUED row between 1-based positions.

        The rows keep the same set of position slots, so the result is a pure
        permutation of the QUEUED ordering.
        """
        async with self.db.session() as session:
            queued = await self._queued_rows(session, guild_id)
            size = len(queued)
            if not (1 <= from_position <= size and 1 <= to_position <= size):
                return False
            if from_position == to_position:
                return True

            slots = [row.position for row in queued]
            row = queued.pop(from_position - 1)
            queued.insert(to_position - 1, row)

            # Tied slots (same position, ordered by id) are spread out first
            slots = self._distinct_slots(slots)
            for slot, entry in zip(slots, queued):
                entry.position = slot
            return True

    async def clear_queued(self, guild_id: int, include_current: bool = False) -> int:
        """Delete QUEUED and PLAYED rows (and CURRENT when leaving voice). History is kept."""
        statuses = [QueueStatus.QUEUED.value, QueueStatus.PLAYED.value]
        if include_current:
            statuses.append(QueueStatus.CURRENT.value)

        async with self.db.session() as session:
            result = await session.execute(
                delete(MusicQueueEntry).where(
                    MusicQueueEntry.guild_id == guild_id,
                    MusicQueueEntry.status.in_(statuses),
                )
            )
            removed = result.rowcount

        logger.debug(f"Cleared {removed} queue row(s) for guild {guild_id}")
        return removed

    async def recycle_played(self, guild_id: int) -> int:
        """Return every PLAYED row to QUEUED with ``recycled`` set."""
        async with self.db.session() as session:
            result = await session.execute(
                update(MusicQueueEntry)
                .where(MusicQueueEntry.guild_id == guild_id, MusicQueueEntry.status == QueueStatus.PLAYED.value)
                .values(status=QueueStatus.QUEUED.value, recycled=True)
            )
            return result.rowcount

    async def restore_interrupted(self, guild_id: int) -> int:
        """Requeue a CURRENT row left behind by a previous process so it plays next."""
        async with self.db.session() as session:
            result = await session.execute(
                select(func.min(MusicQueueEntry.position)).where(MusicQueueEntry.guild_id == guild_id)
            )
            head = result.scalar_one()
            if head is None:
                return 0

            result = await session.execute(
                update(MusicQueueEntry)
                .where(MusicQueueEntry.guild_id == guild_id, MusicQueueEntry.status == QueueStatus.CURRENT.value)
                .values(status=QueueStatus.QUEUED.value, position=head - 1)
            )
            restored = result.rowcount

        if restored:
            logger.info(f"Restored {restored} interrupted track(s) for guild {guild_id}")
        return restored

    async def append_history(self, guild_id: int, user_id: int, title: str, url: str, played_at: int) -> int:
        async with self.db.session() as session:
            entry = MusicHistoryEntry(
                guild_id=guild_id,
                user_id=user_id,
                track_title=(title or "Unknown title")[:TITLE_MAX_LENGTH],
                track_url=url or "",
                played_at=played_at,
            )
            session.add(entry)
            await session.flush()
            return entry.id

    async def list_history(self, guild_id: int, limit: int) -> list[MusicHistoryEntry]:
        """Most recent first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(MusicHistoryEntry)
                .where(MusicHistoryEntry.guild_id == guild_id)
                .order_by(MusicHistoryEntry.played_at.desc(), MusicHistoryEntry.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    @staticmethod
    async def _queued_rows(session: Any, guild_id: int) -> list[MusicQueueEntry]:
        result = await session.execute(
            select(MusicQueueEntry)
            .where(MusicQueueEntry.guild_id == guild_id, MusicQueueEntry.status == QueueStatus.QUEUED.value)
            .order_by(MusicQueueEntry.position, MusicQueueEntry.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def _distinct_slots(slots: list[int]) -> list[int]:
        distinct = []
        for slot in slots:
            if distinct and slot <= distinct[-1]:
                slot = distinct[-1] + 1
            distinct.append(slot)
        return distinct
