from .bot import DiscordBot
from .plugin_loader import PluginLoader

__all__ = ["DiscordBot", "PluginLoader"]
