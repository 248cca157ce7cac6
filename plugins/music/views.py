import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import hikari
import miru

from .embeds import stopped_embed
from .errors import MusicError
from .models import MusicQueueEntry
from .sessions import SearchSession
from .utils import format_duration, truncate

if TYPE_CHECKING:
    from .controller import MusicController

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong, please try again."


async def run_guarded(ctx: miru.ViewContext, action: Callable[[], Awaitable[None]]) -> bool:
    """Run a component action, answering failures ephemerally. Returns True on success."""
    try:
        await action()
    except MusicError as e:
        await ctx.respond(e.message, flags=hikari.MessageFlag.EPHEMERAL)
        return False
    except Exception as e:
        logger.error(f"Music component {ctx.interaction.custom_id} failed in guild {ctx.guild_id}: {e}")
        await ctx.respond(GENERIC_FAILURE, flags=hikari.MessageFlag.EPHEMERAL)
        return False
    return True


class NowPlayingView(miru.View):
    """Controls under the Now Playing panel.

    The view is persistent and shared by every guild: handlers act on the
    guild the interaction came from, and the panel is re-rendered after each
    change.
    """

    def __init__(self, controller: "MusicController") -> None:
        super().__init__(timeout=None)
        self.controller = controller

    async def _refresh(self, ctx: miru.ViewContext) -> None:
        embed = await self.controller.render_now_playing(ctx.guild_id)
        await ctx.edit_response(embed=embed, components=self)

    @miru.button(emoji="⏯️", custom_id="music:ctrl:pause", style=hikari.ButtonStyle.SECONDARY)
    async def pause_button(self, ctx: miru.ViewContext, button: miru.Button) -> None:
        async def action() -> None:
            await self.controller.toggle_pause(ctx.guild_id, ctx.user.id)
            await self._refresh(ctx)

        await run_guarded(ctx, action)

    @miru.button(emoji="⏭️", custom_id="music:ctrl:skip", style=hikari.ButtonStyle.SECONDARY)
    async def skip_button(self, ctx: miru.ViewContext, button: miru.Button) -> None:
        async def action() -> None:
            await self.controller.skip(ctx.guild_id, ctx.user.id)
            await self._refresh(ctx)

        await run_guarded(ctx, action)

    @miru.button(emoji="⏹️", custom_id="music:ctrl:stop", style=hikari.ButtonStyle.DANGER)
    async def stop_button(self, ctx: miru.ViewContext, button: miru.Button) -> None:
        async def action() -> None:
            await self.controller.stop(ctx.guild_id, ctx.user.id)
            await ctx.edit_response(embed=stopped_embed(), components=[])

        await run_guarded(ctx, action)

    @miru.button(emoji="🔁", custom_id="music:ctrl:loop", style=hikari.ButtonStyle.SECONDARY)
    async def loop_button(self, ctx: miru.ViewContext, button: miru.Button) -> None:
        async def action() -> None:
            await self.controller.set_loop(ctx.guild_id, ctx.user.id)
            await self._refresh(ctx)

        await run_guarded(ctx, action)

    @miru.button(emoji="🔀", custom_id="music:ctrl:shuffle", style=hikari.ButtonStyle.SECONDARY)
    async def shuffle_button(self, ctx: miru.ViewContext, button: miru.Button) -> None:
        async def action() -> None:
            await self.controller.toggle_shuffle(ctx.guild_id, ctx.user.id)
            await self._refresh(ctx)

        await run_guarded(ctx, action)


class SearchSelect(miru.TextSelect):
    def __init__(self, session: SearchSession, title_limit: int = 95) -> None:
        options = []
        for i, track in enumerate(session.candidates):
            options.append(
                miru.SelectOption(
                    label=f"{i + 1}. {truncate(track.title, title_limit)}",
                    value=str(i),
                    description=truncate(f"By: {track.author} | Duration: {format_duration(track.duration)}", 100),
                    emoji="🎵",
                )
            )

        super().__init__(
            options=options,
            custom_id=f"music:select:{session.token}",
            placeholder="Choose a track to play...",
        )

    async def callback(self, ctx: miru.ViewContext) -> None:
        await self.view.choose(ctx, int(self.values[0]))


class SearchView(miru.View):
    def __init__(
        self,
        controller: "MusicController",
        session: SearchSession,
        *,
        timeout: float = 60,
        title_limit: int = 95,
    ) -> None:
        super().__init__(timeout=timeout)
        self.controller = controller
        self.token = session.token
        self.add_item(SearchSelect(session, title_limit))

    async def choose(self, ctx: miru.ViewContext, index: int) -> None:
        async def action() -> None:
            embed = await self.controller.choose_search_result(self.token, ctx.user.id, index)
            await ctx.edit_response(embed=embed, components=[])
            self.stop()

        await run_guarded(ctx, action)

    async def on_timeout(self) -> None:
        self.controller.sessions.take_search(self.token)
        for item in self.children:
            item.disabled = True

        if self.message:
            try:
                await self.message.edit(components=self)
            except hikari.HikariError as e:
                logger.debug(f"Could not disable expired search menu: {e}")


class QueueRemoveSelect(miru.TextSelect):
    def __init__(self, guild_id: int, rows: list[MusicQueueEntry], title_limit: int = 95) -> None:
        options = [
            miru.SelectOption(label=f"{position}. {truncate(row.title, title_limit)}", value=str(position))
            for position, row in enumerate(rows, start=1)
        ]
        super().__init__(
            options=options,
            custom_id=f"music:remove:{guild_id}",
            placeholder="Remove a track from the queue...",
        )

    async def callback(self, ctx: miru.ViewContext) -> None:
        await self.view.remove(ctx, int(self.values[0]))


class QueueView(miru.View):
    """Queue listing with a select menu that removes the chosen position."""

    def __init__(
        self,
        controller: "MusicController",
        guild_id: int,
        rows: list[MusicQueueEntry],
        *,
        timeout: float = 300,
        title_limit: int = 95,
    ) -> None:
        super().__init__(timeout=timeout)
        self.controller = controller
        self.guild_id = guild_id
        self.title_limit = title_limit
        self.add_item(QueueRemoveSelect(guild_id, rows, title_limit))

    async def remove(self, ctx: miru.ViewContext, position: int) -> None:
        async def action() -> None:
            await self.controller.remove_from_queue(self.guild_id, ctx.user.id, position)
            embed, rows = await self.controller.render_queue(self.guild_id)

            self.clear_items()
            if rows:
                self.add_item(QueueRemoveSelect(self.guild_id, rows, self.title_limit))
                await ctx.edit_response(embed=embed, components=self)
            else:
                await ctx.edit_response(embed=embed, components=[])
                self.stop()

        await run_guarded(ctx, action)

    async def on_timeout(self) -> None:
        for item in self.children:
            item.disabled = True

        if self.message:
            try:
                await self.message.edit(components=self)
            except hikari.HikariError as e:
                logger.debug(f"Could not disable expired queue menu: {e}")
