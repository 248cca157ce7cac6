import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import lavalink

logger = logging.getLogger(__name__)

T = TypeVar("T")

URL_PREFIXES = ("http://", "https://")


class LoadKind(str, Enum):
    TRACK = "track"
    PLAYLIST = "playlist"
    SEARCH = "search"
    NO_MATCH = "no_match"
    FAILURE = "failure"


@dataclass(frozen=True)
class LoadOutcome:
    kind: LoadKind
    tracks: tuple[lavalink.AudioTrack, ...] = ()
    playlist_name: str | None = None
    reason: str | None = None

    @classmethod
    def track(cls, track: lavalink.AudioTrack) -> "LoadOutcome":
        return cls(LoadKind.TRACK, (track,))

    @classmethod
    def playlist(cls, name: str, tracks: list[lavalink.AudioTrack]) -> "LoadOutcome":
        return cls(LoadKind.PLAYLIST, tuple(tracks), playlist_name=name)

    @classmethod
    def search(cls, tracks: list[lavalink.AudioTrack]) -> "LoadOutcome":
        return cls(LoadKind.SEARCH, tuple(tracks))

    @classmethod
    def no_match(cls) -> "LoadOutcome":
        return cls(LoadKind.NO_MATCH)

    @classmethod
    def failure(cls, reason: str) -> "LoadOutcome":
        return cls(LoadKind.FAILURE, reason=reason)

    @property
    def ordered(self) -> bool:
        return self.kind in (LoadKind.TRACK, LoadKind.PLAYLIST)


class SourceLoader:
    """Resolves user queries through Lavalink.

    ``load`` hands each outcome to a delivery callback. Track and playlist
    deliveries for a guild run in the order the loads were submitted, even
    when Lavalink answers out of order.
    """

    def __init__(
        self,
        client: Any,
        *,
        search_prefix: str = "ytsearch:",
        max_results: int = 5,
        timeout: float = 15.0,
    ) -> None:
        self.client = client
        self.search_prefix = search_prefix
        self.max_results = max_results
        self.timeout = timeout
        self._tails: dict[int, asyncio.Future] = {}

    def classify(self, query: str) -> tuple[str, bool]:
        """Return the Lavalink identifier for ``query`` and whether it was a search."""
        query = query.strip()
        if query.startswith(URL_PREFIXES):
            return query, False
        return f"{self.search_prefix}{query}", True

    async def resolve(self, query: str) -> LoadOutcome:
        identifier, is_search = self.classify(query)
        if identifier == self.search_prefix:
            return LoadOutcome.no_match()

        try:
            result = await asyncio.wait_for(self.client.get_tracks(identifier), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out loading {identifier!r}")
            return LoadOutcome.failure("timeout")
        except Exception as e:
            logger.error(f"Error loading {identifier!r}: {e}")
            return LoadOutcome.failure(str(e) or type(e).__name__)

        return self._to_outcome(result, is_search)

    async def load(
        self,
        guild_id: int,
        query: str,
        deliver: Callable[[LoadOutcome], Awaitable[T]],
    ) -> T:
        previous = self._tails.get(guild_id)
        done = asyncio.get_running_loop().create_future()
        self._tails[guild_id] = done

        try:
            outcome = await self.resolve(query)
            if previous is not None and outcome.ordered:
                await asyncio.shield(previous)
            return await deliver(outcome)
        finally:
            self._release(guild_id, done, previous)

    def _release(self, guild_id: int, done: asyncio.Future, previous: asyncio.Future | None) -> None:
        if previous is not None and not previous.done():
            # A search answered early; loads queued behind it still wait for the earlier one
            previous.add_done_callback(lambda _: self._release(guild_id, done, None))
            return

        if not done.done():
            done.set_result(None)
        if self._tails.get(guild_id) is done:
            del self._tails[guild_id]

    def _to_outcome(self, result: Any, is_search: bool) -> LoadOutcome:
        load_type = result.load_type
        tracks = list(result.tracks or [])

        if load_type == lavalink.LoadType.ERROR:
            error = getattr(result, "error", None)
            reason = getattr(error, "message", None) or "load failed"
            return LoadOutcome.failure(reason)

        if load_type == lavalink.LoadType.EMPTY or not tracks:
            return LoadOutcome.no_match()

        if load_type == lavalink.LoadType.SEARCH or (is_search and load_type != lavalink.LoadType.PLAYLIST):
            return LoadOutcome.search(tracks[: self.max_results])

        if load_type == lavalink.LoadType.PLAYLIST:
            name = getattr(result.playlist_info, "name", None) or "Playlist"
            return LoadOutcome.playlist(name, tracks)

        return LoadOutcome.track(tracks[0])
