import asyncio
import logging
import os
from pathlib import Path

import typer

from bot.core import DiscordBot
from config.settings import settings

app = typer.Typer(
    name="discord-bot",
    help="Discord music bot",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


@app.command()
def run(
    dev: bool = typer.Option(False, "--dev", help="Run in development mode"),
    log_level: str | None = typer.Option(None, "--log-level", help="Set log level"),
) -> None:
    """Run the Discord bot."""
    if dev:
        os.environ["ENVIRONMENT"] = "development"

    if log_level:
        os.environ["LOG_LEVEL"] = log_level

    setup_logging(log_level or settings.log_level)

    bot = DiscordBot()
    bot.run()


@app.command()
def plugins() -> None:
    """List the plugins found in the plugin directories."""
    typer.echo("📦 Available Plugins:")
    for directory in settings.plugin_directories:
        plugin_dir = Path(directory)
        if not plugin_dir.exists():
            continue
        for plugin_path in sorted(plugin_dir.iterdir()):
            if plugin_path.is_dir() and (plugin_path / "__init__.py").exists():
                enabled = "✅" if plugin_path.name in settings.enabled_plugins else "❌"
                typer.echo(f"  {enabled} {plugin_path.name}")


@app.command()
def db(
    action: str = typer.Argument(help="Action: create, reset"),
) -> None:
    """Database management commands."""

    async def run_db_command() -> None:
        from bot.database import db_manager

        # Importing the models adds the music tables to the shared metadata
        import plugins.music.models  # noqa: F401

        try:
            if action == "create":
                await db_manager.create_tables()
                typer.echo("✅ Database tables created")
            elif action == "reset":
                if typer.confirm("⚠️  This will delete every queue and history entry. Continue?"):
                    await db_manager.drop_tables()
                    await db_manager.create_tables()
                    typer.echo("✅ Database reset completed")
            else:
                typer.echo(f"Unknown action: {action}")
        finally:
            await db_manager.close()

    asyncio.run(run_db_command())


@app.command()
def queue(
    guild_id: int = typer.Argument(help="Guild to inspect"),
    limit: int = typer.Option(20, "--limit", help="Number of queued tracks to list"),
) -> None:
    """Show the persisted music queue of a guild."""

    async def show_queue() -> None:
        from bot.database import db_manager
        from plugins.music.models import QueueStatus
        from plugins.music.queue_store import QueueStore

        store = QueueStore(db_manager)
        try:
            current = await store.current_of(guild_id)
            rows = await store.list_queued(guild_id, limit=limit)
            total = await store.count_queued(guild_id)
        finally:
            await db_manager.close()

        if current is not None:
            typer.echo(f"▶️  {current.title} ({QueueStatus.CURRENT.value})")
        if not rows:
            typer.echo("The queue is empty.")
            return
        for position, row in enumerate(rows, start=1):
            typer.echo(f"{position:>3}. {row.title}")
        if total > len(rows):
            typer.echo(f"... and {total - len(rows)} more")

    asyncio.run(show_queue())


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
