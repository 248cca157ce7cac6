import hikari
import lightbulb

from bot.plugins.commands import CommandArgument, command

from ..config import music_settings
from ..errors import UserInputError
from ..views import QueueView

QUEUE_ACTIONS = ("view", "clear", "shuffle", "remove", "move")


def setup_queue_commands(plugin):
    """Setup queue management commands on the plugin."""

    async def show_queue(ctx: lightbulb.Context, guild_id: int) -> None:
        embed, rows = await plugin.controller.render_queue(guild_id)
        if not rows:
            await plugin.smart_respond(ctx, embed=embed)
            return

        view = QueueView(
            plugin.controller,
            guild_id,
            rows,
            timeout=music_settings.queue_view_timeout_seconds,
            title_limit=music_settings.select_title_max_length,
        )
        await plugin.respond_with_view(ctx, embed, view)

    @command(
        name="queue",
        description="View or manage the music queue",
        aliases=["q"],
        arguments=[
            CommandArgument(
                "action",
                hikari.OptionType.STRING,
                "What to do with the queue",
                required=False,
                default="view",
                choices=[lightbulb.Choice(action.title(), action) for action in QUEUE_ACTIONS],
            ),
            CommandArgument("position", hikari.OptionType.INTEGER, "Position to remove", required=False, min_value=1),
            CommandArgument("from_position", hikari.OptionType.INTEGER, "Position to move from", required=False, min_value=1),
            CommandArgument("to_position", hikari.OptionType.INTEGER, "Position to move to", required=False, min_value=1),
        ],
    )
    async def queue(
        ctx: lightbulb.Context,
        action: str = "view",
        position: int = 0,
        from_position: int = 0,
        to_position: int = 0,
    ) -> None:
        async with plugin.command_guard(ctx):
            guild_id = plugin.require_guild(ctx)
            action = (action or "view").lower()

            if action == "view":
                await show_queue(ctx, guild_id)

            elif action == "clear":
                removed = await plugin.controller.clear_queue(guild_id, ctx.user.id)
                await plugin.respond_success(ctx, f"Removed {removed} track(s) from the queue.", title="🗑️ Queue Cleared")

            elif action == "shuffle":
                enabled = await plugin.controller.toggle_shuffle(guild_id, ctx.user.id)
                await plugin.respond_success(ctx, title="🔀 Shuffle enabled" if enabled else "➡️ Shuffle disabled")

            elif action == "remove":
                if not position:
                    raise UserInputError("Please provide the position to remove.")
                removed = await plugin.controller.remove_from_queue(guild_id, ctx.user.id, position)
                await plugin.respond_success(ctx, f"Removed **{removed.title}** from the queue.", title="🗑️ Removed")

            elif action == "move":
                if position and not to_position:
                    # Text commands pass both positions positionally: !queue move 3 1
                    from_position, to_position = position, from_position
                if not from_position or not to_position:
                    raise UserInputError("Please provide both from_position and to_position.")
                await plugin.controller.move_in_queue(guild_id, ctx.user.id, from_position, to_position)
                await plugin.respond_success(
                    ctx, f"Moved track from position {from_position} to {to_position}.", title="↕️ Moved"
                )

            else:
                raise UserInputError(f"Unknown queue action. Use one of: {', '.join(QUEUE_ACTIONS)}.")

    return [queue]
