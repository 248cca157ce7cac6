import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from plugins.music.cleanup import MusicCleanup
from plugins.music.queue_store import QueueStore
from plugins.music.sessions import SearchSession, SessionRegistry
from tests.fakes import FakePlayerManager, make_guild_player, make_track

GUILD = 1
USER = 10


@pytest.fixture
def voice():
    voice = MagicMock()
    voice.is_connected = MagicMock(return_value=True)
    voice.disconnect = AsyncMock()
    return voice


@pytest.fixture
def manager():
    return FakePlayerManager()


@pytest_asyncio.fixture
async def setup(db, voice, manager):
    store = QueueStore(db)

    async def factory(guild_id):
        return make_guild_player(store, guild_id, manager)

    sessions = SessionRegistry(factory)
    cleanup = MusicCleanup(sessions, store, voice)
    return sessions, store, cleanup


class TestCleanupGuild:
    @pytest.mark.asyncio
    async def test_tears_everything_down(self, setup, voice, manager):
        sessions, store, cleanup = setup
        player = await sessions.get_or_create_player(GUILD)
        for title in ("A", "B", "C"):
            await player.scheduler.enqueue(make_track(title), USER)
        await player.scheduler.skip()
        search = SearchSession.create(GUILD, USER, [make_track("X")])
        sessions.put_search(search.token, search)

        assert await cleanup.cleanup_guild(GUILD) is True

        assert player.audio.stop_calls == 1
        assert manager.destroyed == [GUILD]
        assert player.scheduler.is_idle
        assert await store.current_of(GUILD) is None
        assert await store.count_queued(GUILD) == 0
        voice.disconnect.assert_awaited_once_with(GUILD)
        assert sessions.get_player(GUILD) is None
        assert sessions.get_search(search.token) is None
        # History survives leaving voice
        assert [entry.track_title for entry in await store.list_history(GUILD, 10)] == ["A"]

    @pytest.mark.asyncio
    async def test_guild_without_player(self, setup, voice):
        sessions, store, cleanup = setup
        voice.is_connected.return_value = False

        assert await cleanup.cleanup_guild(GUILD) is True
        voice.disconnect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_step_does_not_stop_the_rest(self, setup, voice):
        sessions, store, cleanup = setup
        player = await sessions.get_or_create_player(GUILD)
        await player.scheduler.enqueue(make_track("A"), USER)
        player.audio.stop = AsyncMock(side_effect=RuntimeError("node gone"))

        assert await cleanup.cleanup_guild(GUILD) is False

        assert await store.current_of(GUILD) is None
        voice.disconnect.assert_awaited_once_with(GUILD)
        assert sessions.get_player(GUILD) is None

    @pytest.mark.asyncio
    async def test_disconnect_failure_is_reported(self, setup, voice):
        sessions, store, cleanup = setup
        voice.disconnect.side_effect = RuntimeError("gateway closed")

        assert await cleanup.cleanup_guild(GUILD) is False

    @pytest.mark.asyncio
    async def test_nested_cleanup_is_a_no_op(self, setup, voice):
        sessions, store, cleanup = setup
        nested = []

        async def disconnect(guild_id):
            # The gateway echoes our leave back as a voice state update
            nested.append(await cleanup.cleanup_guild(guild_id))

        voice.disconnect.side_effect = disconnect

        assert await cleanup.cleanup_guild(GUILD) is True
        assert nested == [True]
        voice.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_guilds_are_untouched(self, setup):
        sessions, store, cleanup = setup
        other = await sessions.get_or_create_player(GUILD + 1)
        await other.scheduler.enqueue(make_track("Keep"), USER)

        await cleanup.cleanup_guild(GUILD)

        assert sessions.get_player(GUILD + 1) is other
        assert (await store.current_of(GUILD + 1)).title == "Keep"


    @pytest.mark.asyncio
    async def test_track_starting_during_cleanup_is_not_kept(self, setup, manager):
        sessions, store, cleanup = setup
        player = await sessions.get_or_create_player(GUILD)
        for title in ("A", "B"):
            await player.scheduler.enqueue(make_track(title), USER)
        player.audio.play_gate = asyncio.Event()

        skip = asyncio.create_task(player.scheduler.skip())
        for _ in range(200):
            if player.scheduler.playing is not None and player.scheduler.playing.title == "B":
                break
            await asyncio.sleep(0.01)

        assert await cleanup.cleanup_guild(GUILD) is True
        player.audio.play_gate.set()

        assert await skip is None
        assert manager.destroyed == [GUILD]
        assert player.scheduler.playing is None
        assert await store.current_of(GUILD) is None


class TestShutdown:
    @pytest.mark.asyncio
    async def test_cleans_every_guild(self, setup, manager):
        sessions, store, cleanup = setup
        for guild_id in (1, 2, 3):
            await sessions.get_or_create_player(guild_id)

        assert await cleanup.shutdown() is True
        assert sorted(manager.destroyed) == [1, 2, 3]
        assert sessions.guild_ids() == []

    @pytest.mark.asyncio
    async def test_reports_partial_failure(self, setup):
        sessions, store, cleanup = setup
        await sessions.get_or_create_player(1)
        broken = await sessions.get_or_create_player(2)
        broken.audio.stop = AsyncMock(side_effect=RuntimeError("node gone"))

        assert await cleanup.shutdown() is False
        assert sessions.guild_ids() == []
