"""Apply pending wallet migrations to DATABASE_URL.

Usage: python scripts/run_migrations.py
"""
import asyncio
import sys
import pathlib

# Ensure repository root is on sys.path so imports work when running this script
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from lootforge.config import Settings
from lootforge.utils.logger import get_logger
from lootforge.utils.migrations import apply_migrations

logger = get_logger("lootforge.migrations")


def main() -> None:
    settings = Settings()
    if not settings.DATABASE_URL:
        logger.error("DATABASE_URL not set; cannot run migrations.")
        return
    applied = asyncio.run(apply_migrations(settings.DATABASE_URL))
    logger.info("Applied %d migration(s): %s", len(applied), ", ".join(applied) or "none")


if __name__ == "__main__":
    main()
