import logging
from typing import Any

import hikari

from config.settings import settings

logger = logging.getLogger(__name__)


class PrefixCommand:
    def __init__(
        self,
        name: str,
        callback: Any,
        description: str = "",
        aliases: list[str] | None = None,
        plugin_name: str | None = None,
        arguments: list[Any] | None = None,
    ):
        self.name = name
        self.callback = callback
        self.description = description
        self.aliases = aliases or []
        self.plugin_name = plugin_name
        self.arguments = arguments or []


class MessageCommandHandler:
    def __init__(self, bot: Any):
        self.bot = bot
        self.commands: dict[str, PrefixCommand] = {}
        self.prefix = settings.bot_prefix

    def add_command(self, command: PrefixCommand) -> None:
        self.commands[command.name] = command

        # Add aliases
        for alias in command.aliases:
            self.commands[alias] = command

        logger.debug(f"Added prefix command: {command.name} (aliases: {command.aliases})")

    def remove_command(self, name: str) -> None:
        if name in self.commands:
            command = self.commands[name]

            # Remove main command and aliases
            self.commands.pop(command.name, None)
            for alias in command.aliases:
                self.commands.pop(alias, None)

            logger.debug(f"Removed prefix command: {name}")

    async def handle_message(self, event: hikari.GuildMessageCreateEvent) -> bool:
        # Ignore bot messages
        if event.author.is_bot:
            return False

        # Check if message starts with prefix
        if not event.content or not event.content.startswith(self.prefix):
            return False

        # Parse command and arguments
        content = event.content[len(self.prefix):].strip()
        if not content:
            return False

        parts = content.split()
        command_name = parts[0].lower()
        args = parts[1:]

        # Find command
        if command_name not in self.commands:
            return False

        command = self.commands[command_name]

        logger.info(f"Prefix command called: {self.prefix}{command_name} by {event.author.username}")

        ctx = PrefixContext(event, self.bot, args)
        try:
            await command.callback(ctx)
        except Exception as e:
            logger.error(f"Error executing prefix command {command_name}: {e}")
            try:
                await ctx.respond(f"❌ Command failed: {e}")
            except hikari.HikariError as respond_error:
                logger.error(f"Could not report failure of {command_name}: {respond_error}")
        return True


class PrefixContext:
    """Message-command stand-in for the parts of ``lightbulb.Context`` plugins use."""

    def __init__(self, event: hikari.GuildMessageCreateEvent, bot: Any, args: list[str]):
        self.event = event
        self.bot = bot
        self.args = args

        self.author = event.author
        self.user = event.author
        self.member = event.member
        self.guild_id = event.guild_id
        self.channel_id = event.channel_id

    async def defer(self, *args: Any, **kwargs: Any) -> None:
        # Text commands have no interaction deadline
        return None

    async def respond(
        self,
        content: str | None = None,
        *,
        embed: hikari.Embed | None = None,
        components: Any = None,
        **kwargs: Any,
    ) -> hikari.Message:
        # Interaction-only options such as flags do not apply to plain messages
        return await self.bot.hikari_bot.rest.create_message(
            self.channel_id,
            content=content if content is not None else hikari.UNDEFINED,
            embed=embed if embed is not None else hikari.UNDEFINED,
            components=components if components is not None else hikari.UNDEFINED,
        )
