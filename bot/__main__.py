import logging
import os
import sys

from bot.core import DiscordBot
from config.settings import settings

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the Discord bot."""
    try:
        logger.info("Initializing Discord bot...")

        if len(sys.argv) > 1 and sys.argv[1] == "--dev":
            os.environ["ENVIRONMENT"] = "development"

        bot = DiscordBot()
        bot.run()

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
