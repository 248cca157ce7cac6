import hikari
import lightbulb

from bot.plugins.commands import CommandArgument, command

from ..config import music_settings
from ..errors import UserInputError
from ..scheduler import LoopMode
from ..views import SearchView

LOOP_MESSAGES = {
    LoopMode.OFF: "➡️ Loop disabled",
    LoopMode.TRACK: "🔂 Repeating the current track",
    LoopMode.QUEUE: "🔁 Repeating the whole queue",
}


def setup_playback_commands(plugin):
    """Setup playback-related commands on the plugin."""

    @command(
        name="play",
        description="Play a song or playlist from a URL, or search for one",
        arguments=[
            CommandArgument("query", hikari.OptionType.STRING, "Song name or URL to play")
        ],
    )
    async def play(ctx: lightbulb.Context, query: str) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            plugin.controller.listener_channel(guild_id, ctx.user.id)

            # Loading can outlast the interaction deadline
            await ctx.defer()
            response = await plugin.controller.play(guild_id, ctx.user.id, query)

            if response.search is None:
                await plugin.smart_respond(ctx, embed=response.embed)
                return

            view = SearchView(
                plugin.controller,
                response.search,
                timeout=music_settings.search_view_timeout_seconds,
                title_limit=music_settings.select_title_max_length,
            )
            await plugin.respond_with_view(ctx, response.embed, view)

    @command(
        name="skip",
        description="Skip the current track",
        aliases=["s", "next"],
    )
    async def skip(ctx: lightbulb.Context) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            next_track = await plugin.controller.skip(guild_id, ctx.user.id)

            if next_track:
                message = f"Now playing: **{next_track.title}**"
            else:
                message = "That was the last track in the queue."
            await plugin.respond_success(ctx, message, title="⏭️ Skipped")

    @command(
        name="pause",
        description="Pause or resume playback",
        aliases=["resume"],
    )
    async def pause(ctx: lightbulb.Context) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            paused = await plugin.controller.toggle_pause(guild_id, ctx.user.id)
            await plugin.respond_success(ctx, title="⏸️ Paused" if paused else "▶️ Resumed")

    @command(
        name="volume",
        description="Set the playback volume",
        aliases=["vol"],
        arguments=[
            CommandArgument(
                "level",
                hikari.OptionType.INTEGER,
                "Volume level (0-100)",
                min_value=0,
                max_value=100,
            )
        ],
    )
    async def volume(ctx: lightbulb.Context, level: int | None) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            if level is None:
                raise UserInputError("Please provide a volume between 0 and 100.")

            level = await plugin.controller.set_volume(guild_id, ctx.user.id, level)
            emoji = "🔇" if level == 0 else "🔉" if level < 50 else "🔊"
            await plugin.respond_success(ctx, f"Volume set to **{level}%**", title=f"{emoji} Volume")

    @command(
        name="loop",
        description="Set the loop mode, or cycle it when no mode is given",
        aliases=["repeat"],
        arguments=[
            CommandArgument(
                "mode",
                hikari.OptionType.STRING,
                "Loop mode",
                required=False,
                choices=[
                    lightbulb.Choice("Off", "off"),
                    lightbulb.Choice("Track", "track"),
                    lightbulb.Choice("Queue", "queue"),
                ],
            )
        ],
    )
    async def loop(ctx: lightbulb.Context, mode: str = "") -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            loop_mode = await plugin.controller.set_loop(guild_id, ctx.user.id, mode)
            await plugin.respond_success(ctx, title=LOOP_MESSAGES[loop_mode])

    return [play, skip, pause, volume, loop]
