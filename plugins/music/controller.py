"""User-facing music operations shared by slash commands, text commands and components.

Each operation validates its input, raises a :class:`MusicError` subclass for
anything the invoker should be told about, and leaves rendering to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any

import hikari
import lavalink

from .cleanup import MusicCleanup
from .config import MusicSettings
from .embeds import added_embed, history_embed, now_playing_embed, playlist_embed, queue_embed, search_embed
from .errors import NotInVoiceError, SourceLoadError, UserInputError
from .loader import LoadKind, LoadOutcome, SourceLoader
from .models import MusicQueueEntry, QueueStatus
from .player import GuildPlayer
from .queue_store import QueueStore
from .scheduler import LoopMode
from .sessions import SearchSession, SessionRegistry
from .voice import VoiceConnector

logger = logging.getLogger(__name__)


@dataclass
class PlayResponse:
    embed: hikari.Embed
    search: SearchSession | None = None


class MusicController:
    def __init__(
        self,
        *,
        cache: Any,
        sessions: SessionRegistry,
        store: QueueStore,
        voice: VoiceConnector,
        cleanup: MusicCleanup,
        settings: MusicSettings,
    ) -> None:
        self.cache = cache
        self.sessions = sessions
        self.store = store
        self.voice = voice
        self.cleanup = cleanup
        self.settings = settings
        self.loader: SourceLoader | None = None

    # Guards

    def listener_channel(self, guild_id: int, user_id: int) -> int:
        """Voice channel the user is sitting in, or NotInVoiceError."""
        state = self.cache.get_voice_state(guild_id, user_id)
        if state is None or state.channel_id is None:
            raise NotInVoiceError()
        return state.channel_id

    def require_player(self, guild_id: int) -> GuildPlayer:
        player = self.sessions.get_player(guild_id)
        if player is None:
            raise UserInputError("Nothing is playing right now.")
        return player

    def require_playing(self, guild_id: int) -> GuildPlayer:
        player = self.require_player(guild_id)
        if player.get_playing() is None:
            raise UserInputError("Nothing is playing right now.")
        return player

    async def join(self, guild_id: int, channel_id: int) -> GuildPlayer:
        try:
            await self.voice.connect(guild_id, channel_id)
        except Exception:
            await self.cleanup.cleanup_guild(guild_id)
            raise

        player = await self.sessions.get_or_create_player(guild_id)
        player.voice_channel_id = channel_id
        return player

    # Playback

    async def play(self, guild_id: int, user_id: int, query: str) -> PlayResponse:
        query = (query or "").strip()
        if not query:
            raise UserInputError("Please provide a song name or URL.")
        if self.loader is None:
            raise SourceLoadError("not ready", "The music player is still starting up.")

        channel_id = self.listener_channel(guild_id, user_id)

        async def deliver(outcome: LoadOutcome) -> PlayResponse:
            return await self._deliver(guild_id, user_id, channel_id, query, outcome)

        return await self.loader.load(guild_id, query, deliver)

    async def _deliver(
        self,
        guild_id: int,
        user_id: int,
        channel_id: int,
        query: str,
        outcome: LoadOutcome,
    ) -> PlayResponse:
        if outcome.kind is LoadKind.NO_MATCH:
            raise SourceLoadError("no match", f"No tracks found for: `{query}`")
        if outcome.kind is LoadKind.FAILURE:
            raise SourceLoadError(outcome.reason or "unknown", f"Failed to load track: {outcome.reason}")

        if outcome.kind is LoadKind.SEARCH:
            session = SearchSession.create(guild_id, user_id, list(outcome.tracks))
            self.sessions.put_search(session.token, session)
            return PlayResponse(embed=search_embed(query, list(session.candidates)), search=session)

        player = await self.join(guild_id, channel_id)
        tracks = [self._with_requester(track, user_id) for track in outcome.tracks]

        if outcome.kind is LoadKind.PLAYLIST:
            await player.scheduler.enqueue_many(tracks, user_id)
            return PlayResponse(embed=playlist_embed(outcome.playlist_name or "Playlist", tracks, user_id))

        return PlayResponse(embed=await self._enqueue_one(player, tracks[0], user_id))

    async def choose_search_result(self, token: str, user_id: int, index: int) -> hikari.Embed:
        session = self.sessions.get_search(token)
        if session is None:
            raise UserInputError("Search session expired.")
        if session.requester_id != user_id:
            raise UserInputError("Only the person who started the search can select a track.")
        if not 0 <= index < len(session.candidates):
            raise UserInputError("Invalid selection.")

        channel_id = self.listener_channel(session.guild_id, user_id)
        if self.sessions.take_search(token) is None:
            raise UserInputError("Search session expired.")

        player = await self.join(session.guild_id, channel_id)
        track = self._with_requester(session.candidates[index], user_id)
        return await self._enqueue_one(player, track, user_id)

    async def _enqueue_one(self, player: GuildPlayer, track: lavalink.AudioTrack, user_id: int) -> hikari.Embed:
        row_id = await player.scheduler.enqueue(track, user_id)
        row = await self.store.get(row_id)
        if row is not None and row.status == QueueStatus.CURRENT.value:
            position = 0
        else:
            position = await self.store.count_queued(player.guild_id)
        return added_embed(track, position, user_id)

    @staticmethod
    def _with_requester(track: lavalink.AudioTrack, user_id: int) -> lavalink.AudioTrack:
        track.extra["requester"] = user_id
        return track

    async def skip(self, guild_id: int, user_id: int) -> lavalink.AudioTrack | None:
        """Skip the current track. Returns the track that started next, if any."""
        self.listener_channel(guild_id, user_id)
        player = self.require_playing(guild_id)
        return await player.scheduler.skip()

    async def toggle_pause(self, guild_id: int, user_id: int) -> bool:
        self.listener_channel(guild_id, user_id)
        player = self.require_playing(guild_id)
        paused = not player.is_paused()
        await player.set_paused(paused)
        return paused

    async def set_volume(self, guild_id: int, user_id: int, level: int) -> int:
        self.listener_channel(guild_id, user_id)
        if not 0 <= level <= 100:
            raise UserInputError("Volume must be between 0 and 100.")
        player = self.require_player(guild_id)
        await player.set_volume(level)
        return level

    async def set_loop(self, guild_id: int, user_id: int, mode: str | None = None) -> LoopMode:
        """Set the loop mode, or cycle OFF -> TRACK -> QUEUE when no mode is given."""
        self.listener_channel(guild_id, user_id)
        if mode:
            loop_mode = LoopMode.parse(mode)
            if loop_mode is None:
                raise UserInputError("Loop mode must be one of: off, track, queue.")
            return await self.require_player(guild_id).scheduler.set_loop(loop_mode)
        return await self.require_player(guild_id).scheduler.cycle_loop()

    async def toggle_shuffle(self, guild_id: int, user_id: int) -> bool:
        self.listener_channel(guild_id, user_id)
        return await self.require_player(guild_id).scheduler.toggle_shuffle()

    async def stop(self, guild_id: int, user_id: int) -> None:
        self.listener_channel(guild_id, user_id)
        await self.cleanup.cleanup_guild(guild_id)

    async def leave(self, guild_id: int, user_id: int) -> None:
        self.listener_channel(guild_id, user_id)
        if self.sessions.get_player(guild_id) is None and not self.voice.is_connected(guild_id):
            raise UserInputError("I'm not connected to a voice channel.")
        await self.cleanup.cleanup_guild(guild_id)

    # Queue

    async def remove_from_queue(self, guild_id: int, user_id: int, position: int) -> MusicQueueEntry:
        self.listener_channel(guild_id, user_id)
        removed = await self.store.remove_queued(guild_id, position)
        if removed is None:
            raise UserInputError(await self._position_error(guild_id))
        return removed

    async def move_in_queue(self, guild_id: int, user_id: int, from_position: int, to_position: int) -> None:
        self.listener_channel(guild_id, user_id)
        if not await self.store.move_queued(guild_id, from_position, to_position):
            raise UserInputError(await self._position_error(guild_id))

    async def clear_queue(self, guild_id: int, user_id: int) -> int:
        self.listener_channel(guild_id, user_id)
        player = self.sessions.get_player(guild_id)
        if player is not None:
            return await player.scheduler.clear()
        return await self.store.clear_queued(guild_id)

    async def _position_error(self, guild_id: int) -> str:
        count = await self.store.count_queued(guild_id)
        if count == 0:
            return "The queue is empty."
        return f"Position must be between 1 and {count}."

    # Rendering

    async def render_now_playing(self, guild_id: int) -> hikari.Embed:
        player = self.sessions.get_player(guild_id)
        queue_size = await self.store.count_queued(guild_id)
        return now_playing_embed(player, queue_size, progress_cells=self.settings.progress_bar_cells)

    async def render_queue(self, guild_id: int) -> tuple[hikari.Embed, list[MusicQueueEntry]]:
        """Queue embed plus the rows offered in the remove menu."""
        limit = max(self.settings.queue_view_limit, self.settings.remove_menu_limit)
        rows = await self.store.list_queued(guild_id, limit=limit)
        total = await self.store.count_queued(guild_id)
        player = self.sessions.get_player(guild_id)
        current = player.get_playing() if player else None

        embed = queue_embed(current, rows[: self.settings.queue_view_limit], total)
        return embed, rows[: self.settings.remove_menu_limit]

    async def render_history(self, guild_id: int, limit: int | None = None) -> hikari.Embed:
        if not limit or limit < 1:
            limit = self.settings.history_default_limit
        limit = min(limit, self.settings.history_max_limit)
        entries = await self.store.list_history(guild_id, limit)
        return history_embed(entries)
