import logging

from .queue_store import QueueStore
from .sessions import SessionRegistry
from .voice import VoiceConnector

logger = logging.getLogger(__name__)


class MusicCleanup:
    """Tears down a guild's playback: on /leave, when the bot is removed from voice, and at shutdown."""

    def __init__(self, sessions: SessionRegistry, store: QueueStore, voice: VoiceConnector) -> None:
        self.sessions = sessions
        self.store = store
        self.voice = voice
        self._running: set[int] = set()

    async def cleanup_guild(self, guild_id: int) -> bool:
        """Stop and destroy the player, clear the queue, leave voice and forget the guild.

        Every step is attempted even if an earlier one fails. Returns False if any step failed.
        """
        if guild_id in self._running:
            return True

        self._running.add(guild_id)
        ok = True
        try:
            player = self.sessions.get_player(guild_id)
            if player is not None:
                try:
                    await player.destroy()
                except Exception as e:
                    logger.error(f"Error destroying player for guild {guild_id}: {e}")
                    ok = False

            try:
                await self.store.clear_queued(guild_id, include_current=True)
            except Exception as e:
                logger.error(f"Error clearing queue for guild {guild_id}: {e}")
                ok = False

            if self.voice.is_connected(guild_id):
                try:
                    await self.voice.disconnect(guild_id)
                except Exception as e:
                    logger.error(f"Error leaving voice in guild {guild_id}: {e}")
                    ok = False

            self.sessions.remove_player(guild_id)
            self.sessions.drop_searches_for_guild(guild_id)
        finally:
            self._running.discard(guild_id)

        logger.info(f"Cleaned up music session for guild {guild_id}")
        return ok

    async def shutdown(self) -> bool:
        ok = True
        for guild_id in self.sessions.guild_ids():
            if not await self.cleanup_guild(guild_id):
                ok = False
        return ok
