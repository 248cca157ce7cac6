import logging
from typing import Any

import hikari
import lightbulb
import miru

from config.settings import settings

from ..database import db_manager
from .message_handler import MessageCommandHandler
from .plugin_loader import PluginLoader

logger = logging.getLogger(__name__)


class DiscordBot:
    def __init__(self) -> None:
        # Initialize bot components with required intents
        intents = (
            hikari.Intents.ALL_MESSAGES
            | hikari.Intents.GUILDS
            | hikari.Intents.MESSAGE_CONTENT
            | hikari.Intents.GUILD_VOICE_STATES  # Required for voice/music functionality
        )
        # Create Hikari bot first
        self.hikari_bot = hikari.GatewayBot(token=settings.discord_token, intents=intents)
        # Create lightbulb client
        self._command_client = lightbulb.client_from_app(self.hikari_bot)

        # Initialize miru client and store it as an instance attribute
        self.miru_client = miru.Client(self.hikari_bot)

        # Subscribe client to bot events
        self.hikari_bot.subscribe(hikari.StartingEvent, self._command_client.start)

        # Initialize systems
        self.db = db_manager
        self.message_handler = MessageCommandHandler(self)
        self.plugin_loader = PluginLoader(self)

        # Bot state
        self.is_ready = False

        # Setup plugin directories
        for directory in settings.plugin_directories:
            self.plugin_loader.add_plugin_directory(directory)

        self._setup_event_listeners()

    def _setup_event_listeners(self) -> None:
        @self.hikari_bot.listen(hikari.StartingEvent)
        async def on_starting(event: hikari.StartingEvent) -> None:
            logger.info("Bot is starting...")

        @self.hikari_bot.listen(hikari.StartedEvent)
        async def on_started(event: hikari.StartedEvent) -> None:
            logger.info("Bot has started, initializing systems...")
            await self._initialize_systems()

        @self.hikari_bot.listen(hikari.ShardReadyEvent)
        async def on_ready(event: hikari.ShardReadyEvent) -> None:
            if not self.is_ready:
                logger.info(f"Bot is ready! Logged in as {self.hikari_bot.get_me()}")
                self.is_ready = True

        @self.hikari_bot.listen(hikari.StoppingEvent)
        async def on_stopping(event: hikari.StoppingEvent) -> None:
            logger.info("Bot is stopping...")
            await self._cleanup()

        @self.hikari_bot.listen(hikari.GuildMessageCreateEvent)
        async def on_message_create(event: hikari.GuildMessageCreateEvent) -> None:
            await self.message_handler.handle_message(event)

    @property
    def command_client(self) -> lightbulb.Client:
        """Return the Lightbulb command client."""

        return self._command_client

    @property
    def gateway(self) -> hikari.GatewayBot:
        return self.hikari_bot

    @property
    def rest(self) -> hikari.api.RESTClient:
        return self.hikari_bot.rest

    @property
    def cache(self) -> hikari.api.Cache:
        return self.hikari_bot.cache

    async def _initialize_systems(self) -> None:
        try:
            # Initialize database
            await self.db.create_tables()
            if not await self.db.health_check():
                logger.warning("Database health check failed, plugins may not persist state")
            logger.info("Database initialized")

            # Load plugins
            await self._load_plugins()
            logger.info("Plugins loaded")

            # Commands registered after start need an explicit sync
            await self._command_client.sync_application_commands()
            logger.info("All systems initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize systems: {e}")
            raise

    async def _load_plugins(self) -> None:
        discovered = self.plugin_loader.discover_plugins()

        # Load only enabled plugins that were discovered
        plugins_to_load = [p for p in settings.enabled_plugins if p in discovered]

        if plugins_to_load:
            logger.info(f"Loading plugins: {plugins_to_load}")
            await self.plugin_loader.load_all_plugins(plugins_to_load)
        else:
            logger.warning("No valid plugins found to load")

    async def _cleanup(self) -> None:
        # Unload all plugins
        for plugin_name in list(self.plugin_loader.plugins.keys()):
            if not await self.plugin_loader.unload_plugin(plugin_name):
                logger.warning(f"Plugin {plugin_name} did not shut down cleanly")

        await self.db.close()
        logger.info("Cleanup completed")

    def get_plugin(self, name: str) -> Any:
        return self.plugin_loader.get_plugin(name)

    def run(self) -> None:
        try:
            logger.info("Starting Discord bot...")
            self.hikari_bot.run()
        except KeyboardInterrupt:
            logger.info("Bot stopped by user")
        except Exception as e:
            logger.error(f"Bot crashed: {e}")
            raise
