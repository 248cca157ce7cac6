import logging

import lavalink

logger = logging.getLogger(__name__)


class MusicEventHandler:
    def __init__(self, music_plugin):
        self.music_plugin = music_plugin

    @lavalink.listener(lavalink.TrackEndEvent)
    async def track_end(self, event: lavalink.TrackEndEvent):
        guild_id = event.player.guild_id
        logger.debug(f"Track ended on guild {guild_id}: {event.reason}")

        player = self.music_plugin.sessions.get_player(guild_id)
        if player is None:
            return

        try:
            await player.scheduler.on_track_end(event.track, event.reason)
        except Exception as e:
            # Leave the guild idle; the next command starts it again
            logger.error(f"Error advancing queue on guild {guild_id}: {e}")
            player.scheduler.go_idle()

    @lavalink.listener(lavalink.TrackExceptionEvent)
    async def track_exception(self, event: lavalink.TrackExceptionEvent):
        logger.warning(f"Track exception on guild {event.player.guild_id}: {event.message}")

    @lavalink.listener(lavalink.TrackStuckEvent)
    async def track_stuck(self, event: lavalink.TrackStuckEvent):
        guild_id = event.player.guild_id
        logger.warning(f"Track stuck on guild {guild_id} after {event.threshold}ms, skipping")

        player = self.music_plugin.sessions.get_player(guild_id)
        if player is None:
            return

        try:
            await player.scheduler.skip()
        except Exception as e:
            logger.error(f"Error skipping stuck track on guild {guild_id}: {e}")
            player.scheduler.go_idle()
