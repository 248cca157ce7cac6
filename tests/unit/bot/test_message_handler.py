"""Tests for message handler functionality."""

from unittest.mock import AsyncMock, MagicMock, patch

import hikari
import pytest

from bot.core.message_handler import MessageCommandHandler, PrefixCommand, PrefixContext


class TestPrefixCommand:
    """Test PrefixCommand class."""

    def test_prefix_command_creation(self):
        """Test creating a prefix command."""
        callback = AsyncMock()
        cmd = PrefixCommand(
            name="queue",
            callback=callback,
            description="View or manage the music queue",
            aliases=["q"],
            plugin_name="music",
        )

        assert cmd.name == "queue"
        assert cmd.callback == callback
        assert cmd.description == "View or manage the music queue"
        assert cmd.aliases == ["q"]
        assert cmd.plugin_name == "music"

    def test_prefix_command_defaults(self):
        """Test prefix command with default values."""
        callback = AsyncMock()
        cmd = PrefixCommand(name="test", callback=callback)

        assert cmd.name == "test"
        assert cmd.description == ""
        assert cmd.aliases == []
        assert cmd.plugin_name is None
        assert cmd.arguments == []


class TestMessageCommandHandler:
    """Test MessageCommandHandler class."""

    def test_handler_creation(self, mock_bot):
        """Test creating a message command handler."""
        handler = MessageCommandHandler(mock_bot)

        assert handler.bot == mock_bot
        assert handler.commands == {}
        assert handler.prefix == "!"  # Default from settings

    def test_add_command(self, mock_bot):
        """Test adding a command registers its aliases too."""
        handler = MessageCommandHandler(mock_bot)
        cmd = PrefixCommand(name="skip", callback=AsyncMock(), aliases=["s", "next"])

        handler.add_command(cmd)

        assert handler.commands["skip"] is cmd
        assert handler.commands["s"] is cmd
        assert handler.commands["next"] is cmd

    def test_remove_command(self, mock_bot):
        """Test removing a command removes its aliases."""
        handler = MessageCommandHandler(mock_bot)
        cmd = PrefixCommand(name="skip", callback=AsyncMock(), aliases=["s"])

        handler.add_command(cmd)
        handler.remove_command("skip")

        assert handler.commands == {}

    def test_remove_unknown_command(self, mock_bot):
        """Test removing a command that was never added."""
        handler = MessageCommandHandler(mock_bot)

        handler.remove_command("missing")

        assert handler.commands == {}

    @pytest.mark.asyncio
    async def test_handle_message_bot_ignore(self, mock_bot, mock_message_event):
        """Test that bot messages are ignored."""
        handler = MessageCommandHandler(mock_bot)
        mock_message_event.author.is_bot = True

        assert await handler.handle_message(mock_message_event) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["hello world", None, "!", "!   ", "!unknown"])
    async def test_handle_message_ignored(self, mock_bot, mock_message_event, content):
        """Test messages that are not known commands are ignored."""
        handler = MessageCommandHandler(mock_bot)
        mock_message_event.content = content

        assert await handler.handle_message(mock_message_event) is False

    @pytest.mark.asyncio
    async def test_handle_message_success(self, mock_bot, mock_message_event):
        """Test successful command execution passes the arguments along."""
        handler = MessageCommandHandler(mock_bot)
        callback = AsyncMock()
        handler.add_command(PrefixCommand(name="queue", callback=callback, aliases=["q"]))
        mock_message_event.content = "!Q move 3 1"

        result = await handler.handle_message(mock_message_event)

        assert result is True
        ctx = callback.await_args.args[0]
        assert isinstance(ctx, PrefixContext)
        assert ctx.args == ["move", "3", "1"]

    @pytest.mark.asyncio
    async def test_handle_message_command_error(self, mock_bot, mock_message_event):
        """Test a failing command is reported in the channel."""
        handler = MessageCommandHandler(mock_bot)
        handler.add_command(PrefixCommand(name="test", callback=AsyncMock(side_effect=Exception("Test error"))))
        mock_message_event.content = "!test"

        with patch.object(PrefixContext, "respond", new=AsyncMock()) as mock_respond:
            result = await handler.handle_message(mock_message_event)

        assert result is True
        mock_respond.assert_awaited_once_with("❌ Command failed: Test error")

    @pytest.mark.asyncio
    async def test_handle_message_error_report_fails(self, mock_bot, mock_message_event):
        """Test a failure to report an error does not escape the handler."""
        handler = MessageCommandHandler(mock_bot)
        handler.add_command(PrefixCommand(name="test", callback=AsyncMock(side_effect=Exception("Test error"))))
        mock_message_event.content = "!test"
        failure = hikari.ComponentStateConflictError("rest client closed")

        with patch.object(PrefixContext, "respond", new=AsyncMock(side_effect=failure)):
            assert await handler.handle_message(mock_message_event) is True


class TestPrefixContext:
    """Test PrefixContext class."""

    def test_context_creation(self, mock_message_event, mock_bot):
        """Test creating a prefix context."""
        args = ["arg1", "arg2"]
        ctx = PrefixContext(mock_message_event, mock_bot, args)

        assert ctx.event == mock_message_event
        assert ctx.bot == mock_bot
        assert ctx.args == args
        assert ctx.author == mock_message_event.author
        assert ctx.user == mock_message_event.author
        assert ctx.member == mock_message_event.member
        assert ctx.guild_id == mock_message_event.guild_id
        assert ctx.channel_id == mock_message_event.channel_id

    def test_context_has_no_interaction(self, mock_message_event, mock_bot):
        """Test text contexts never look like interactions."""
        ctx = PrefixContext(mock_message_event, mock_bot, [])

        assert not hasattr(ctx, "interaction")

    @pytest.mark.asyncio
    async def test_defer_is_a_no_op(self, mock_message_event, mock_bot):
        """Test deferring a text command does nothing."""
        mock_bot.hikari_bot.rest.create_message = AsyncMock()
        ctx = PrefixContext(mock_message_event, mock_bot, [])

        await ctx.defer()

        mock_bot.hikari_bot.rest.create_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_respond(self, mock_message_event, mock_bot):
        """Test responding to a message."""
        mock_bot.hikari_bot.rest.create_message = AsyncMock()
        ctx = PrefixContext(mock_message_event, mock_bot, [])

        await ctx.respond("Test message")

        mock_bot.hikari_bot.rest.create_message.assert_called_once_with(
            mock_message_event.channel_id,
            content="Test message",
            embed=hikari.UNDEFINED,
            components=hikari.UNDEFINED,
        )

    @pytest.mark.asyncio
    async def test_respond_with_embed_and_components(self, mock_message_event, mock_bot):
        """Test responding with an embed and components, dropping interaction-only flags."""
        mock_bot.hikari_bot.rest.create_message = AsyncMock()
        ctx = PrefixContext(mock_message_event, mock_bot, [])
        embed = MagicMock(spec=hikari.Embed)
        view = MagicMock()

        await ctx.respond(embed=embed, components=view, flags=hikari.MessageFlag.EPHEMERAL)

        mock_bot.hikari_bot.rest.create_message.assert_called_once_with(
            mock_message_event.channel_id,
            content=hikari.UNDEFINED,
            embed=embed,
            components=view,
        )
