import hikari
import lightbulb

from bot.plugins.commands import CommandArgument, command

from ..config import music_settings


def setup_history_commands(plugin):
    """Setup music history commands on the plugin."""

    @command(
        name="history",
        description="Show recently played tracks",
        aliases=["recent"],
        arguments=[
            CommandArgument(
                "limit",
                hikari.OptionType.INTEGER,
                f"Number of tracks to show (max {music_settings.history_max_limit})",
                required=False,
                default=music_settings.history_default_limit,
                min_value=1,
                max_value=music_settings.history_max_limit,
            )
        ],
    )
    async def history(ctx: lightbulb.Context, limit: int = music_settings.history_default_limit) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            embed = await plugin.controller.render_history(guild_id, limit)
            await plugin.smart_respond(ctx, embed=embed)

    return [history]
