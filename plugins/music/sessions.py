import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import lavalink

from .player import GuildPlayer

logger = logging.getLogger(__name__)


@dataclass
class SearchSession:
    token: str
    guild_id: int
    requester_id: int
    candidates: tuple[lavalink.AudioTrack, ...]
    created_at: float = field(default_factory=time.monotonic)

    @classmethod
    def create(cls, guild_id: int, requester_id: int, candidates: list[lavalink.AudioTrack]) -> "SearchSession":
        return cls(
            token=uuid.uuid4().hex,
            guild_id=guild_id,
            requester_id=requester_id,
            candidates=tuple(candidates),
        )

    def is_expired(self, ttl: float, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.created_at > ttl


class SessionRegistry:
    """Process-wide guild -> player map plus the pending search selections.

    Everything runs on the event loop, so plain dicts are safe as long as
    no await happens between a lookup and the matching insert. Player
    creation awaits, so it is serialized per guild.
    """

    def __init__(
        self,
        player_factory: Callable[[int], Awaitable[GuildPlayer]],
        *,
        search_ttl: float = 300,
    ) -> None:
        self._player_factory = player_factory
        self.search_ttl = search_ttl
        self._players: dict[int, GuildPlayer] = {}
        self._creating: dict[int, asyncio.Lock] = {}
        self._searches: dict[str, SearchSession] = {}

    async def get_or_create_player(self, guild_id: int) -> GuildPlayer:
        player = self._players.get(guild_id)
        if player is not None:
            return player

        lock = self._creating.setdefault(guild_id, asyncio.Lock())
        async with lock:
            player = self._players.get(guild_id)
            if player is None:
                player = await self._player_factory(guild_id)
                self._players[guild_id] = player
                logger.info(f"Created player for guild {guild_id}")

        return player

    def get_player(self, guild_id: int) -> GuildPlayer | None:
        return self._players.get(guild_id)

    def remove_player(self, guild_id: int) -> GuildPlayer | None:
        self._creating.pop(guild_id, None)
        return self._players.pop(guild_id, None)

    def guild_ids(self) -> list[int]:
        return list(self._players)

    def put_search(self, token: str, session: SearchSession) -> None:
        self.evict_expired()
        self._searches[token] = session

    def get_search(self, token: str) -> SearchSession | None:
        """Look at a session without consuming it."""
        self.evict_expired()
        return self._searches.get(token)

    def take_search(self, token: str) -> SearchSession | None:
        self.evict_expired()
        return self._searches.pop(token, None)

    def evict_expired(self, now: float | None = None) -> int:
        expired = [token for token, session in self._searches.items() if session.is_expired(self.search_ttl, now)]
        for token in expired:
            del self._searches[token]
        return len(expired)

    def drop_searches_for_guild(self, guild_id: int) -> int:
        tokens = [token for token, session in self._searches.items() if session.guild_id == guild_id]
        for token in tokens:
            del self._searches[token]
        return len(tokens)
