import lightbulb

from bot.plugins.commands import command


def setup_voice_commands(plugin):
    """Setup voice channel commands on the plugin."""

    @command(
        name="leave",
        description="Stop the music, clear the queue and leave the voice channel",
        aliases=["disconnect", "dc"],
    )
    async def leave(ctx: lightbulb.Context) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            await plugin.controller.leave(guild_id, ctx.user.id)
            await plugin.respond_success(ctx, "Cleared the queue and left the voice channel.", title="👋 Disconnected")

    return [leave]
