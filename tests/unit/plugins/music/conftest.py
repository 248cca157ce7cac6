"""Fixtures wiring the music controller to an in-memory database and fake Lavalink."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from plugins.music.cleanup import MusicCleanup
from plugins.music.config import MusicSettings
from plugins.music.controller import MusicController
from plugins.music.loader import SourceLoader
from plugins.music.queue_store import QueueStore
from plugins.music.sessions import SessionRegistry
from tests.fakes import FakeLavalinkClient, FakePlayerManager, make_guild_player


@pytest.fixture
def store(db):
    return QueueStore(db)


@pytest.fixture
def lavalink_client():
    return FakeLavalinkClient()


@pytest.fixture
def player_manager():
    return FakePlayerManager()


@pytest.fixture
def cache():
    cache = MagicMock()
    cache.get_voice_state = MagicMock(return_value=None)
    return cache


@pytest.fixture
def voice():
    voice = MagicMock()
    voice.connect = AsyncMock()
    voice.disconnect = AsyncMock()
    voice.is_connected = MagicMock(return_value=False)
    return voice


@pytest.fixture
def sessions(store, player_manager):
    async def factory(guild_id):
        return make_guild_player(store, guild_id, player_manager)

    return SessionRegistry(factory, search_ttl=300)


@pytest.fixture
def controller(cache, sessions, store, voice, lavalink_client):
    controller = MusicController(
        cache=cache,
        sessions=sessions,
        store=store,
        voice=voice,
        cleanup=MusicCleanup(sessions, store, voice),
        settings=MusicSettings(),
    )
    controller.loader = SourceLoader(lavalink_client, search_prefix="ytsearch:", max_results=5, timeout=1.0)
    return controller
