from pydantic import Field
from pydantic_settings import BaseSettings


class BotSettings(BaseSettings):
    discord_token: str = Field(..., description="Discord bot token")
    database_url: str = Field(default="sqlite:///data/bot.db", description="Database connection URL")

    bot_prefix: str = Field(default="!", description="Command prefix")
    environment: str = Field(default="development", description="Environment")
    log_level: str = Field(default="DEBUG", description="Logging level")

    # Plugin configuration
    enabled_plugins: list[str] = Field(
        default=["music"],
        description="List of enabled plugins",
    )
    plugin_directories: list[str] = Field(
        default=["plugins"],
        description="Directories to scan for plugins",
    )

    # Development settings
    debug: bool = Field(default=False, description="Enable debug mode")

    # Lavalink settings
    lavalink_host: str = Field(default="lavalink", description="Lavalink server host")
    lavalink_port: int = Field(default=2333, description="Lavalink server port")
    lavalink_password: str = Field(default="youshallnotpass", description="Lavalink server password")
    lavalink_secure: bool = Field(default=False, description="Use secure connection to Lavalink")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = BotSettings()
