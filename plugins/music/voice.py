import asyncio
import logging
from typing import Any

import hikari

from .errors import VoiceUnavailableError

logger = logging.getLogger(__name__)


class VoiceConnector:
    """Joins and leaves voice channels through the gateway.

    The gateway only acknowledges a join by sending the bot's own voice state
    back, so ``connect`` waits for that update (fed in via ``notify_state``).
    """

    def __init__(self, gateway: Any, *, timeout: float = 10.0) -> None:
        self.gateway = gateway
        self.timeout = timeout
        self._waiters: dict[int, tuple[int, asyncio.Event]] = {}

    def _own_state(self, guild_id: int) -> hikari.VoiceState | None:
        me = self.gateway.get_me()
        if me is None:
            return None
        return self.gateway.cache.get_voice_state(guild_id, me.id)

    def channel_of(self, guild_id: int) -> int | None:
        state = self._own_state(guild_id)
        return state.channel_id if state else None

    def is_connected(self, guild_id: int) -> bool:
        return self.channel_of(guild_id) is not None

    async def connect(self, guild_id: int, channel_id: int) -> None:
        if self.channel_of(guild_id) == channel_id:
            return

        event = asyncio.Event()
        self._waiters[guild_id] = (channel_id, event)
        try:
            await self.gateway.update_voice_state(guild_id, channel_id, self_deaf=True)
            await asyncio.wait_for(event.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out joining voice channel {channel_id} in guild {guild_id}")
            raise VoiceUnavailableError() from None
        except hikari.HikariError as e:
            logger.error(f"Error joining voice channel {channel_id} in guild {guild_id}: {e}")
            raise VoiceUnavailableError() from e
        finally:
            if self._waiters.get(guild_id) == (channel_id, event):
                self._waiters.pop(guild_id, None)

        logger.info(f"Connected to voice channel {channel_id} in guild {guild_id}")

    def notify_state(self, guild_id: int, channel_id: int | None) -> None:
        waiter = self._waiters.get(guild_id)
        if waiter and waiter[0] == channel_id:
            waiter[1].set()

    async def disconnect(self, guild_id: int) -> None:
        await self.gateway.update_voice_state(guild_id, None)
        logger.info(f"Disconnected from voice in guild {guild_id}")
