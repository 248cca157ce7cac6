from .history import setup_history_commands
from .nowplaying import setup_nowplaying_commands
from .playback import setup_playback_commands
from .queue import setup_queue_commands
from .voice import setup_voice_commands

__all__ = [
    "setup_history_commands",
    "setup_nowplaying_commands",
    "setup_playback_commands",
    "setup_queue_commands",
    "setup_voice_commands",
]
