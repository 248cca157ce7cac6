import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import hikari
import lavalink
import lightbulb
import miru

from bot.plugins.base import BasePlugin
from bot.plugins.mixins import DatabaseMixin
from config.settings import settings

from .cleanup import MusicCleanup
from .codec import TrackCodec
from .commands import (
    setup_history_commands,
    setup_nowplaying_commands,
    setup_playback_commands,
    setup_queue_commands,
    setup_voice_commands,
)
from .config import music_settings
from .controller import MusicController
from .errors import MusicError, UserInputError
from .events import MusicEventHandler
from .loader import SourceLoader
from .models import MusicHistoryEntry, MusicQueueEntry
from .player import GuildPlayer, MusicAudioPlayer
from .queue_store import QueueStore
from .scheduler import Scheduler
from .sessions import SessionRegistry
from .views import NowPlayingView
from .voice import VoiceConnector

logger = logging.getLogger(__name__)


class MusicPlugin(DatabaseMixin, BasePlugin):
    def __init__(self, bot: Any) -> None:
        super().__init__(bot)
        self.lavalink_client: lavalink.Client | None = None
        self.codec = TrackCodec()
        self.store = QueueStore(self.db)
        self.voice = VoiceConnector(self.gateway, timeout=music_settings.voice_connect_timeout_seconds)
        self.sessions = SessionRegistry(
            self._create_guild_player,
            search_ttl=music_settings.search_session_ttl_seconds,
        )
        self.cleanup = MusicCleanup(self.sessions, self.store, self.voice)
        self.controller = MusicController(
            cache=self.cache,
            sessions=self.sessions,
            store=self.store,
            voice=self.voice,
            cleanup=self.cleanup,
            settings=music_settings,
        )
        self.controls = NowPlayingView(self.controller)
        self._controls_started = False
        self._gateway_listeners: list[tuple[type[hikari.Event], Any]] = []

        self.register_models(MusicQueueEntry, MusicHistoryEntry)

    async def on_load(self) -> None:
        # Register all commands BEFORE calling super().on_load()
        self._register_commands()

        await super().on_load()

        me = self.gateway.get_me()
        if me is None:
            raise RuntimeError("Music plugin must be loaded after the gateway is connected")

        self.lavalink_client = lavalink.Client(me.id, player=MusicAudioPlayer)
        self.lavalink_client.add_node(
            host=settings.lavalink_host,
            port=settings.lavalink_port,
            password=settings.lavalink_password,
            region="us",
            name="default-node",
            ssl=settings.lavalink_secure,
        )
        self.lavalink_client.add_event_hooks(MusicEventHandler(self))

        self.controller.loader = SourceLoader(
            self.lavalink_client,
            search_prefix=music_settings.search_prefix,
            max_results=music_settings.max_search_results,
            timeout=music_settings.load_timeout_seconds,
        )

        self._listen(hikari.VoiceServerUpdateEvent, self.on_voice_server_update)
        self._listen(hikari.VoiceStateUpdateEvent, self.on_voice_state_update)

        self.bot.miru_client.start_view(self.controls)
        self._controls_started = True

        logger.info("Music plugin loaded with Lavalink.py")

    async def on_unload(self) -> None:
        ok = await self.cleanup.shutdown()

        if self._controls_started:
            self.controls.stop()
            self._controls_started = False

        for event_type, callback in self._gateway_listeners:
            self.gateway.unsubscribe(event_type, callback)
        self._gateway_listeners.clear()

        if self.lavalink_client:
            await self.lavalink_client.destroy()
            self.lavalink_client = None
        self.controller.loader = None

        await super().on_unload()

        if not ok:
            raise MusicError("Music shutdown did not complete for every guild")

    def _register_commands(self) -> None:
        """Register all music commands to the plugin."""
        all_commands = (
            setup_playback_commands(self)
            + setup_nowplaying_commands(self)
            + setup_queue_commands(self)
            + setup_voice_commands(self)
            + setup_history_commands(self)
        )

        for command_func in all_commands:
            setattr(self, command_func.__name__, command_func)

    def _listen(self, event_type: type[hikari.Event], callback: Any) -> None:
        self.gateway.subscribe(event_type, callback)
        self._gateway_listeners.append((event_type, callback))

    async def _create_guild_player(self, guild_id: int) -> GuildPlayer:
        if self.lavalink_client is None:
            raise MusicError("The music player is not available right now.")

        player_manager = self.lavalink_client.player_manager
        audio = player_manager.create(guild_id)
        scheduler = Scheduler(
            guild_id,
            audio,
            self.store,
            self.codec,
            is_connected=lambda: self.voice.is_connected(guild_id),
        )
        player = GuildPlayer(guild_id, audio, scheduler, player_manager)

        await self.store.restore_interrupted(guild_id)
        await player.set_volume(music_settings.default_volume)
        return player

    async def on_voice_server_update(self, event: hikari.VoiceServerUpdateEvent) -> None:
        lavalink_data = {
            "t": "VOICE_SERVER_UPDATE",
            "d": {
                "guild_id": event.guild_id,
                "endpoint": event.endpoint[6:],
                "token": event.token,
            },
        }
        await self.lavalink_client.voice_update_handler(lavalink_data)

    async def on_voice_state_update(self, event: hikari.VoiceStateUpdateEvent) -> None:
        state = event.state
        lavalink_data = {
            "t": "VOICE_STATE_UPDATE",
            "d": {
                "guild_id": state.guild_id,
                "user_id": state.user_id,
                "channel_id": state.channel_id,
                "session_id": state.session_id,
            },
        }
        await self.lavalink_client.voice_update_handler(lavalink_data)

        me = self.gateway.get_me()
        if me is None or state.user_id != me.id:
            return

        self.voice.notify_state(state.guild_id, state.channel_id)

        if state.channel_id is None:
            # Kicked, disconnected or /leave: all end up here
            await self.cleanup.cleanup_guild(state.guild_id)
            return

        player = self.sessions.get_player(state.guild_id)
        if player is not None:
            player.voice_channel_id = state.channel_id

    # Command helpers

    def require_guild(self, ctx: lightbulb.Context) -> int:
        if not ctx.guild_id:
            raise UserInputError("This command can only be used in a server.")
        return ctx.guild_id

    @asynccontextmanager
    async def command_guard(self, ctx: lightbulb.Context) -> AsyncIterator[None]:
        """Turn music errors into ephemeral replies; log anything unexpected."""
        try:
            yield
        except MusicError as e:
            await self.respond_error(ctx, e.message)
        except Exception as e:
            self.logger.error(f"Music command failed in guild {ctx.guild_id}: {e}")
            await self.respond_error(ctx, "Something went wrong, please try again.")

    async def respond_with_view(self, ctx: lightbulb.Context, embed: hikari.Embed, view: miru.View) -> None:
        await self.smart_respond(ctx, embed=embed, components=view)
        self.bot.miru_client.start_view(view)
