"""Pytest configuration and shared fixtures."""

import logging
import os
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time
os.environ.setdefault("DISCORD_TOKEN", "test-token")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import hikari  # noqa: E402
import lightbulb  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from bot.database.manager import DatabaseManager  # noqa: E402

# Disable logging during tests
logging.disable(logging.CRITICAL)

BOT_USER_ID = 12345


@pytest_asyncio.fixture
async def db():
    """A real in-memory database with the music tables created."""
    import plugins.music.models  # noqa: F401

    manager = DatabaseManager("sqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def mock_hikari_bot():
    """Mock Hikari bot instance."""
    bot = MagicMock(spec=hikari.GatewayBot)
    bot.cache = MagicMock()
    bot.rest = MagicMock()
    bot.get_me = MagicMock(return_value=MagicMock(id=BOT_USER_ID, username="TestBot"))
    bot.update_voice_state = AsyncMock()
    bot.subscribe = MagicMock()
    bot.unsubscribe = MagicMock()

    # Nobody is in voice until a test says so
    bot.cache.get_voice_state = MagicMock(return_value=None)
    bot.cache.get_guild = MagicMock(return_value=None)

    return bot


@pytest.fixture
def mock_lightbulb_client():
    """Mock Lightbulb client instance."""
    client = MagicMock(spec=lightbulb.Client)
    return client


@pytest.fixture
def mock_db_manager():
    """Mock database manager."""
    db = MagicMock()
    db.health_check = AsyncMock(return_value=True)
    db.create_plugin_tables = AsyncMock()

    # Mock session context manager
    mock_session = AsyncMock()
    db.session = MagicMock(return_value=AsyncContextManager(mock_session))

    return db


@pytest.fixture
def mock_plugin_loader():
    """Mock plugin loader."""
    loader = MagicMock()
    loader.get_loaded_plugins = MagicMock(return_value=[])
    loader.plugins = {}
    return loader


@pytest.fixture
def mock_bot(mock_hikari_bot, mock_lightbulb_client, mock_db_manager, mock_plugin_loader):
    """Mock complete bot instance."""
    bot = MagicMock()
    bot.hikari_bot = mock_hikari_bot
    bot.gateway = mock_hikari_bot
    bot.rest = mock_hikari_bot.rest
    bot.cache = mock_hikari_bot.cache
    bot.command_client = mock_lightbulb_client
    bot.db = mock_db_manager
    bot.plugin_loader = mock_plugin_loader
    bot.miru_client = MagicMock()
    bot.message_handler = MagicMock()
    return bot


@pytest.fixture
def mock_user():
    """Mock Discord user."""
    user = MagicMock(spec=hikari.User)
    user.id = 111111111
    user.username = "testuser"
    user.display_name = "Test User"
    user.is_bot = False
    user.mention = "<@111111111>"
    return user


@pytest.fixture
def mock_member(mock_user):
    """Mock Discord member."""
    member = MagicMock(spec=hikari.Member)
    member.id = mock_user.id
    member.username = mock_user.username
    member.display_name = mock_user.display_name
    member.is_bot = mock_user.is_bot
    member.user = mock_user
    return member


@pytest.fixture
def mock_message_event(mock_user, mock_member):
    """Mock message create event."""
    event = MagicMock(spec=hikari.GuildMessageCreateEvent)
    event.author = mock_user
    event.member = mock_member
    event.guild_id = 123456789
    event.channel_id = 444444444
    event.content = "!test command"
    return event


@pytest.fixture
def mock_context(mock_user, mock_member, mock_bot):
    """Mock command context."""
    ctx = MagicMock()
    ctx.author = mock_user
    ctx.user = mock_user
    ctx.member = mock_member
    ctx.guild_id = 123456789
    ctx.channel_id = 444444444
    ctx.bot = mock_bot
    ctx.respond = AsyncMock()
    ctx.defer = AsyncMock()
    ctx.edit_response = AsyncMock()
    return ctx


@pytest.fixture
def sample_plugin_metadata():
    """Sample plugin metadata for testing."""
    return {
        "name": "Test Plugin",
        "version": "1.0.0",
        "author": "Test Author",
        "description": "A test plugin for unit testing",
    }


class AsyncContextManager:
    """Helper for mocking async context managers."""

    def __init__(self, return_value=None):
        self.return_value = return_value

    async def __aenter__(self):
        return self.return_value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


@pytest.fixture
def async_context_manager():
    """Factory for creating async context managers."""
    return AsyncContextManager
