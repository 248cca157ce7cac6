from .plugin import MusicPlugin

PLUGIN_METADATA = {
    "name": "Music",
    "version": "5.0.0",
    "author": "Bot Framework",
    "description": (
        "Per-guild music player with a persistent queue and history, loop and shuffle modes, "
        "search selection and an interactive now playing panel"
    ),
}

__all__ = ["MusicPlugin"]
