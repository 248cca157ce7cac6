import hikari
import lavalink

from .models import MusicHistoryEntry, MusicQueueEntry
from .player import GuildPlayer
from .scheduler import LoopMode
from .utils import format_duration, progress_bar, truncate, youtube_thumbnail

MUSIC_COLOR = hikari.Color(0x1DB954)
ADDED_COLOR = hikari.Color(0x00FF00)
STOPPED_COLOR = hikari.Color(0xED4245)

LOOP_LABELS = {
    LoopMode.OFF: "➡️ Off",
    LoopMode.TRACK: "🔂 Track",
    LoopMode.QUEUE: "🔁 Queue",
}


def artwork_for(track: lavalink.AudioTrack) -> str | None:
    return track.artwork_url or youtube_thumbnail(track.uri)


def track_link(track: lavalink.AudioTrack) -> str:
    if track.uri:
        return f"**[{track.title}]({track.uri})**"
    return f"**{track.title}**"


def now_playing_embed(player: GuildPlayer | None, queue_size: int, *, progress_cells: int = 14) -> hikari.Embed:
    track = player.get_playing() if player else None
    if player is None or track is None:
        return hikari.Embed(title="🎵 Now Playing", description="No track playing", color=MUSIC_COLOR)

    status = "⏸️ Paused" if player.is_paused() else "▶️ Playing"
    embed = hikari.Embed(title=f"🎵 Now Playing · {status}", description=track_link(track), color=MUSIC_COLOR)

    artwork = artwork_for(track)
    if artwork:
        embed.set_thumbnail(artwork)

    embed.add_field(name="👤 Uploader", value=track.author or "Unknown", inline=True)
    embed.add_field(name="⏱️ Duration", value=f"`{format_duration(track.duration)}`", inline=True)
    embed.add_field(
        name="🙋 Requested by",
        value=f"<@{track.requester}>" if track.requester else "Unknown",
        inline=True,
    )
    embed.add_field(name="Loop", value=LOOP_LABELS[player.loop_mode], inline=True)
    embed.add_field(name="Shuffle", value="🔀 On" if player.shuffle else "Off", inline=True)
    embed.add_field(name="📜 Queue", value=f"{queue_size} track{'s' if queue_size != 1 else ''}", inline=True)
    embed.add_field(name="🔊 Volume", value=f"{player.volume}%", inline=True)

    if track.stream:
        embed.add_field(name="Progress", value="🔴 LIVE", inline=False)
    else:
        embed.add_field(
            name="Progress",
            value=progress_bar(player.get_position(), track.duration, progress_cells),
            inline=False,
        )
    return embed


def stopped_embed() -> hikari.Embed:
    return hikari.Embed(title="⏹️ Stopped", description="Playback stopped and queue cleared.", color=STOPPED_COLOR)


def added_embed(track: lavalink.AudioTrack, position: int, requester_id: int) -> hikari.Embed:
    embed = hikari.Embed(title="🎵 Added to Queue", color=ADDED_COLOR)
    embed.add_field(name="🎶 Track", value=f"{track_link(track)}\nBy: {track.author}", inline=False)
    embed.add_field(name="📍 Position", value=f"#{position} in queue" if position else "Playing now", inline=True)
    embed.add_field(name="⏱️ Duration", value=f"`{format_duration(track.duration)}`", inline=True)
    embed.add_field(name="👤 Requested by", value=f"<@{requester_id}>", inline=True)

    artwork = artwork_for(track)
    if artwork:
        embed.set_thumbnail(artwork)
    return embed


def playlist_embed(name: str, tracks: list[lavalink.AudioTrack], requester_id: int) -> hikari.Embed:
    total = sum(track.duration for track in tracks if not track.stream)
    embed = hikari.Embed(
        title="📃 Playlist Added",
        description=f"**{name}**\nAdded **{len(tracks)}** tracks to the queue.",
        color=ADDED_COLOR,
    )
    embed.add_field(name="⏱️ Total Duration", value=f"`{format_duration(total)}`", inline=True)
    embed.add_field(name="👤 Requested by", value=f"<@{requester_id}>", inline=True)
    return embed


def search_embed(query: str, candidates: list[lavalink.AudioTrack]) -> hikari.Embed:
    lines = [
        f"`{i + 1}.` {truncate(track.title)} · {track.author} `[{format_duration(track.duration)}]`"
        for i, track in enumerate(candidates)
    ]
    embed = hikari.Embed(
        title=f"🔍 Results for: {truncate(query, 200)}",
        description="\n".join(lines),
        color=MUSIC_COLOR,
    )
    embed.set_footer("Pick a track from the menu below.")
    return embed


def queue_embed(
    current: lavalink.AudioTrack | None,
    rows: list[MusicQueueEntry],
    total: int,
) -> hikari.Embed:
    embed = hikari.Embed(title="📜 Queue", color=MUSIC_COLOR)

    if current is not None:
        embed.add_field(name="Now Playing", value=track_link(current), inline=False)

    if rows:
        lines = [f"`{i}.` {truncate(row.title, 80)}" for i, row in enumerate(rows, start=1)]
        if total > len(rows):
            lines.append(f"...and {total - len(rows)} more")
        embed.add_field(name=f"Up Next ({total})", value="\n".join(lines), inline=False)
    elif current is None:
        embed.description = "The queue is empty."
    else:
        embed.add_field(name="Up Next", value="Nothing queued.", inline=False)

    return embed


def history_embed(entries: list[MusicHistoryEntry]) -> hikari.Embed:
    embed = hikari.Embed(title="🕘 Recently Played", color=MUSIC_COLOR)
    if not entries:
        embed.description = "Nothing has been played yet."
        return embed

    lines = []
    for i, entry in enumerate(entries, start=1):
        title = truncate(entry.track_title, 80)
        label = f"[{title}]({entry.track_url})" if entry.track_url else title
        lines.append(f"`{i}.` {label} · <@{entry.user_id}> <t:{entry.played_at // 1000}:R>")
    embed.description = "\n".join(lines)
    return embed
