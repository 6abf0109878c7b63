"""Main entry point for the lootforge bot.

Validates settings and starts the bot. The wallet database and the dashboard
are brought up inside the bot's setup hook.
"""
from lootforge.config import Settings
from lootforge.bot import create_bot
from lootforge.utils.logger import get_logger

logger = get_logger("lootforge.run")


def main() -> None:
    settings = Settings()

    missing = settings.validate()
    if missing:
        logger.error("Missing settings: %s. See .env.example", ", ".join(missing))
        return

    bot = create_bot(settings)
    bot.run(settings.TOKEN)


if __name__ == "__main__":
    main()
