from pydantic import Field
from pydantic_settings import BaseSettings


class MusicSettings(BaseSettings):
    """Configuration for the Music plugin."""

    # Source loading
    search_prefix: str = Field(
        default="ytsearch:",
        description="Lavalink search prefix used for queries that are not URLs",
    )
    max_search_results: int = Field(
        default=5,
        description="Number of search candidates offered in the selection menu",
    )
    load_timeout_seconds: float = Field(
        default=15,
        description="Seconds before a track load is reported as a timeout",
    )
    search_session_ttl_seconds: int = Field(
        default=300,
        description="Seconds a search selection stays valid",
    )

    # Voice
    voice_connect_timeout_seconds: float = Field(
        default=10,
        description="Seconds to wait for the gateway to confirm a voice join",
    )

    # UI
    queue_view_timeout_seconds: int = Field(
        default=300,
        description="Timeout for the queue remove menu in seconds",
    )
    search_view_timeout_seconds: int = Field(
        default=60,
        description="Timeout for the search selection menu in seconds",
    )
    queue_view_limit: int = Field(default=20, description="Queued tracks listed by /queue view")
    remove_menu_limit: int = Field(default=25, description="Queued tracks offered in the remove menu")
    progress_bar_cells: int = Field(default=14, description="Cells in the now playing progress bar")
    select_title_max_length: int = Field(default=95, description="Maximum title length in select menus")

    # History
    history_default_limit: int = Field(default=10, description="Entries shown by /history without a limit")
    history_max_limit: int = Field(default=25, description="Largest accepted /history limit")

    # Volume
    default_volume: int = Field(
        default=50,
        description="Volume applied to new players (0-100)",
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "MUSIC_"
        case_sensitive = False
        extra = "ignore"


music_settings = MusicSettings()
