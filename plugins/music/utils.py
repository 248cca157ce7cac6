from urllib.parse import parse_qs, urlparse

KNOB = "🔘"
TRACK_CELL = "▬"


def format_duration(milliseconds: int) -> str:
    """``MM:SS``, or ``HH:MM:SS`` once the duration reaches an hour."""
    total_seconds = max(0, int(milliseconds)) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def truncate(text: str, limit: int = 95) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def progress_bar(position: int, duration: int, cells: int = 14) -> str:
    if duration > 0:
        knob = min(cells, max(0, position * cells // duration))
    else:
        knob = 0

    bar = "".join(KNOB if i == knob else TRACK_CELL for i in range(cells))
    if knob == cells:
        bar += KNOB
    return f"{format_duration(position)} {bar} {format_duration(duration)}"


def youtube_thumbnail(url: str | None) -> str | None:
    if not url:
        return None

    parsed = urlparse(url)
    host = parsed.netloc.lower()
    video_id = None
    if host.endswith("youtube.com"):
        video_id = parse_qs(parsed.query).get("v", [None])[0]
    elif host.endswith("youtu.be"):
        video_id = parsed.path.lstrip("/") or None

    if not video_id:
        return None
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
