"""SQL migrations for the wallet database.

Files in `migrations/` are applied in filename order. Each applied file is
recorded in `schema_migrations` and skipped on later runs.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

import asyncpg

from lootforge.utils.logger import get_logger

logger = get_logger("lootforge.migrations")

MIGRATIONS_DIR = Path(__file__).parents[2] / "migrations"

_CREATE_TRACKING = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    filename TEXT PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


def pending_files(migrations_dir: Path, applied: set) -> List[Path]:
    if not migrations_dir.exists():
        return []
    files = sorted(p for p in migrations_dir.iterdir() if p.suffix == ".sql")
    return [p for p in files if p.name not in applied]


async def apply_migrations(dsn: str, migrations_dir: Path = MIGRATIONS_DIR) -> List[str]:
    """Apply pending .sql files to the given Postgres DSN.

    Each file runs in its own transaction together with its tracking row, so a
    failing file is neither half-applied nor recorded. Returns the names of
    the files applied by this call.
    """
    migrations_dir = Path(migrations_dir)
    conn = await asyncpg.connect(dsn)
    try:
        await conn.execute(_CREATE_TRACKING)
        rows = await conn.fetch("SELECT filename FROM schema_migrations")
        todo = pending_files(migrations_dir, {r["filename"] for r in rows})
        if not todo:
            logger.info("Database schema is up to date")
            return []
        for f in todo:
            logger.info("Applying migration: %s", f.name)
            async with conn.transaction():
                await conn.execute(f.read_text(encoding="utf-8"))
                await conn.execute("INSERT INTO schema_migrations (filename) VALUES ($1)", f.name)
        return [f.name for f in todo]
    finally:
        await conn.close()
