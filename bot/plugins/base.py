from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import hikari
import lightbulb

if TYPE_CHECKING:
    from ..core.bot import DiscordBot

SUCCESS_COLOR = hikari.Color(0x57F287)
ERROR_COLOR = hikari.Color(0xED4245)

logger = logging.getLogger(__name__)


class BasePlugin:
    def __init__(self, bot: DiscordBot) -> None:
        self.bot = bot
        self.name = self.__class__.__name__.lower().replace("plugin", "")
        self.logger = logging.getLogger(f"plugin.{self.name}")
        # Import CommandRegistry here to avoid circular import
        from .commands import CommandRegistry

        self._command_registry: CommandRegistry = CommandRegistry(self)
        self.db = bot.db
        self.command_client = bot.command_client
        self.gateway = bot.gateway
        self.rest = bot.rest
        self.cache = bot.cache

    async def on_load(self) -> None:
        await self._command_registry.register_commands()
        self.logger.info(f"Plugin {self.name} loaded successfully")

    async def on_unload(self) -> None:
        await self._command_registry.unregister_commands()
        self.logger.info(f"Plugin {self.name} unloaded successfully")

    # Utility methods for plugins
    def create_embed(
        self,
        title: str | None = None,
        description: str | None = None,
        color: hikari.Color = hikari.Color(0x7289DA),
    ) -> hikari.Embed:
        embed = hikari.Embed(title=title, description=description, color=color)
        return embed

    async def smart_respond(
        self,
        ctx: lightbulb.Context,
        content: str = None,
        *,
        embed: hikari.Embed = None,
        ephemeral: bool = False,
        **kwargs,
    ) -> None:
        """Context-aware respond that handles flags properly for both slash and prefix commands."""
        # Only interactions support ephemeral responses
        if hasattr(ctx, "interaction") and ephemeral:
            kwargs["flags"] = hikari.MessageFlag.EPHEMERAL

        if content:
            kwargs["content"] = content
        if embed:
            kwargs["embed"] = embed

        try:
            await ctx.respond(**kwargs)
        except hikari.BadRequestError:
            # Fallback: try without flags if the first attempt was rejected
            if "flags" not in kwargs:
                raise
            kwargs.pop("flags")
            await ctx.respond(**kwargs)

    async def respond_success(
        self,
        ctx: lightbulb.Context,
        message: str | None = None,
        *,
        title: str | None = None,
        embed: hikari.Embed | None = None,
        ephemeral: bool = False,
        color: hikari.Color = SUCCESS_COLOR,
        **kwargs: Any,
    ) -> None:
        """Respond with a success-styled embed."""

        response_embed = embed or self.create_embed(title=title, description=message, color=color)
        await self.smart_respond(ctx, embed=response_embed, ephemeral=ephemeral, **kwargs)

    async def respond_error(
        self,
        ctx: lightbulb.Context,
        message: str,
        *,
        title: str | None = "❌ Error",
        embed: hikari.Embed | None = None,
        ephemeral: bool = True,
        color: hikari.Color = ERROR_COLOR,
        **kwargs: Any,
    ) -> None:
        """Respond with an error embed, ephemeral by default."""

        response_embed = embed or self.create_embed(title=title, description=message, color=color)
        await self.smart_respond(ctx, embed=response_embed, ephemeral=ephemeral, **kwargs)
