"""Per-guild playback state machine.

The scheduler decides what plays next. It moves rows through
QUEUED -> CURRENT -> PLAYED (or ERROR), writes history for rows that were not
revived by queue loop, recycles the queue when looping and reacts to
Lavalink's track end events.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

import lavalink

from .codec import TrackCodec
from .errors import TrackDecodeError
from .models import MusicQueueEntry, QueueStatus
from .queue_store import QueueStore

logger = logging.getLogger(__name__)


class LoopMode(str, Enum):
    OFF = "OFF"
    TRACK = "TRACK"
    QUEUE = "QUEUE"

    def next(self) -> "LoopMode":
        members = list(LoopMode)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def parse(cls, value: str) -> "LoopMode | None":
        aliases = {
            "off": cls.OFF,
            "none": cls.OFF,
            "0": cls.OFF,
            "track": cls.TRACK,
            "song": cls.TRACK,
            "1": cls.TRACK,
            "queue": cls.QUEUE,
            "all": cls.QUEUE,
            "2": cls.QUEUE,
        }
        return aliases.get(value.strip().lower())


class Scheduler:
    def __init__(
        self,
        guild_id: int,
        audio: Any,
        store: QueueStore,
        codec: TrackCodec,
        *,
        is_connected: Callable[[], bool],
        lock: asyncio.Lock | None = None,
    ) -> None:
        self.guild_id = guild_id
        self.audio = audio
        self.store = store
        self.codec = codec
        self.loop_mode = LoopMode.OFF
        self.shuffle = False
        self.lock = lock or asyncio.Lock()
        self._is_connected = is_connected
        self._playing: lavalink.AudioTrack | None = None
        self.closed = False

    @property
    def playing(self) -> lavalink.AudioTrack | None:
        return self._playing

    @property
    def is_idle(self) -> bool:
        return self._playing is None

    async def enqueue(self, track: lavalink.AudioTrack, user_id: int) -> int:
        """Store ``track`` and start playback if the guild is idle. Returns the row id."""
        # Positions are read then written, so appends for one guild must not interleave
        async with self.lock:
            row_id = await self.store.enqueue(self.guild_id, user_id, self.codec.encode(track), track.title)
        await self._kick()
        return row_id

    async def enqueue_many(self, tracks: Sequence[lavalink.AudioTrack], user_id: int) -> list[int]:
        entries = [(self.codec.encode(track), track.title) for track in tracks]
        async with self.lock:
            row_ids = await self.store.enqueue_many(self.guild_id, user_id, entries)
        await self._kick()
        return row_ids

    async def advance(self, *, natural: bool = False) -> lavalink.AudioTrack | None:
        """Finish the current row and start the next playable one.

        ``natural`` marks an advance caused by a track finishing on its own,
        which is the only case where TRACK loop replays the same row.
        Returns the track that was started, or None when the guild went idle.
        """
        return await self._advance(natural=natural)

    async def _advance(
        self,
        *,
        natural: bool = False,
        ended: lavalink.AudioTrack | None = None,
        start_only: bool = False,
    ) -> lavalink.AudioTrack | None:
        async with self.lock:
            # Both checks must see the state left by whoever held the lock last
            if self.closed or (start_only and not self.is_idle):
                return None
            if self._is_stale(ended):
                logger.warning(f"Ignoring stale track end for {ended.title!r} in guild {self.guild_id}")
                return None

            track = await self._choose_next(natural)
            self._playing = track

        if track is None:
            logger.debug(f"Queue exhausted in guild {self.guild_id}, going idle")
            await self.audio.stop()
            return None

        try:
            await self.audio.play(track)
        except Exception as e:
            logger.error(f"Failed to start {track.title!r} in guild {self.guild_id}: {e}")
            await self._abandon()
            return None

        if self.closed:
            # Torn down while the track was starting
            logger.debug(f"Guild {self.guild_id} closed while starting {track.title!r}, stopping")
            await self.audio.stop()
            return None

        logger.debug(f"Started {track.title!r} in guild {self.guild_id}")
        return track

    async def skip(self) -> lavalink.AudioTrack | None:
        """Stop the current track and move on. The skipped track goes to history."""
        return await self.advance()

    async def on_track_end(self, track: lavalink.AudioTrack | None, reason: Any) -> None:
        if not reason.may_start_next():
            logger.debug(f"Ignoring track end ({reason}) in guild {self.guild_id}")
            return

        await self._advance(natural=reason == lavalink.EndReason.FINISHED, ended=track)

    async def clear(self) -> int:
        """Drop QUEUED and PLAYED rows. The current track keeps playing."""
        return await self.store.clear_queued(self.guild_id)

    async def cycle_loop(self) -> LoopMode:
        async with self.lock:
            self.loop_mode = self.loop_mode.next()
            return self.loop_mode

    async def set_loop(self, mode: LoopMode) -> LoopMode:
        async with self.lock:
            self.loop_mode = mode
            return mode

    async def toggle_shuffle(self) -> bool:
        async with self.lock:
            self.shuffle = not self.shuffle
            return self.shuffle

    def go_idle(self) -> None:
        self._playing = None

    async def close(self) -> None:
        """Refuse further advances. Used when the guild player is destroyed."""
        async with self.lock:
            self.closed = True
            self._playing = None

    async def _kick(self) -> None:
        if self.is_idle and not self.closed and self._is_connected():
            await self._advance(start_only=True)

    async def _choose_next(self, natural: bool) -> lavalink.AudioTrack | None:
        current = await self.store.current_of(self.guild_id)

        if natural and current is not None and self.loop_mode is LoopMode.TRACK:
            try:
                return self.codec.decode(current.track_blob)
            except TrackDecodeError as e:
                logger.warning(f"Cannot replay row {current.id} in guild {self.guild_id}: {e}")
                await self.store.set_status(current.id, QueueStatus.ERROR)

        for row in await self.store.list_by_status(self.guild_id, QueueStatus.CURRENT):
            await self._finish(row)

        recycled = False
        while True:
            row = await self.store.peek_next(self.guild_id, shuffle=self.shuffle)
            if row is None:
                if self.loop_mode is LoopMode.QUEUE and not recycled:
                    recycled = True
                    count = await self.store.recycle_played(self.guild_id)
                    logger.debug(f"Recycled {count} played row(s) in guild {self.guild_id}")
                    continue
                return None

            try:
                track = self.codec.decode(row.track_blob)
            except TrackDecodeError as e:
                logger.warning(f"Skipping unreadable row {row.id} in guild {self.guild_id}: {e}")
                await self.store.set_status(row.id, QueueStatus.ERROR)
                continue

            await self.store.promote_to_current(row.id)
            return track

    async def _finish(self, row: MusicQueueEntry) -> None:
        await self.store.set_status(row.id, QueueStatus.PLAYED)
        if row.recycled:
            return

        try:
            url = self.codec.decode(row.track_blob).uri
        except TrackDecodeError:
            url = ""
        await self.store.append_history(self.guild_id, row.user_id, row.title, url, int(time.time() * 1000))

    async def _abandon(self) -> None:
        async with self.lock:
            current = await self.store.current_of(self.guild_id)
            if current is not None:
                await self.store.set_status(current.id, QueueStatus.QUEUED)
            self._playing = None

    def _is_stale(self, track: lavalink.AudioTrack | None) -> bool:
        if track is None or self._playing is None:
            return False
        return track.track != self._playing.track
