import lightbulb

from bot.plugins.commands import command


def setup_nowplaying_commands(plugin):
    """Setup now playing related commands on the plugin."""

    @command(
        name="np",
        description="Show the currently playing track with playback controls",
        aliases=["nowplaying"],
    )
    async def now_playing(ctx: lightbulb.Context) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            embed = await plugin.controller.render_now_playing(guild_id)

            player = plugin.sessions.get_player(guild_id)
            if player is None or player.get_playing() is None:
                await plugin.smart_respond(ctx, embed=embed)
                return

            await plugin.smart_respond(ctx, embed=embed, components=plugin.controls)

    return [now_playing]
