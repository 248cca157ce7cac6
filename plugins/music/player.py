import logging
from typing import Any

import lavalink

from .errors import UserInputError
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class MusicAudioPlayer(lavalink.DefaultPlayer):
    """Lavalink player whose queue is owned by the guild scheduler.

    ``DefaultPlayer`` starts the next item of its in-memory queue on track end,
    which would race the scheduler, so that behaviour is disabled here.
    """

    async def handle_event(self, event: Any) -> None:
        return None


class GuildPlayer:
    """One guild's audio player bound to its scheduler."""

    def __init__(self, guild_id: int, audio: Any, scheduler: Scheduler, player_manager: Any) -> None:
        self.guild_id = guild_id
        self.audio = audio
        self.scheduler = scheduler
        self._player_manager = player_manager
        self.voice_channel_id: int | None = None

    @property
    def volume(self) -> int:
        return int(self.audio.volume)

    @property
    def loop_mode(self):
        return self.scheduler.loop_mode

    @property
    def shuffle(self) -> bool:
        return self.scheduler.shuffle

    async def set_volume(self, level: int) -> None:
        if not 0 <= level <= 100:
            raise UserInputError("Volume must be between 0 and 100.")
        await self.audio.set_volume(level)

    async def set_paused(self, paused: bool) -> None:
        await self.audio.set_pause(paused)

    def is_paused(self) -> bool:
        return bool(self.audio.paused)

    def get_playing(self) -> lavalink.AudioTrack | None:
        return self.scheduler.playing

    def get_position(self) -> int:
        if self.scheduler.playing is None:
            return 0
        return int(self.audio.position)

    async def destroy(self) -> None:
        """Stop playback and release the Lavalink player."""
        await self.scheduler.close()
        try:
            await self.audio.stop()
        finally:
            await self._player_manager.destroy(self.guild_id)
        logger.info(f"Destroyed player for guild {self.guild_id}")
