"""Configuration loader for lootforge.

A small Settings class that reads environment variables (and a .env file via
python-dotenv), plus a `validate()` helper for startup checks. Game balance
(weights and price) lives in `data/lootbox.yaml`, see
`lootforge.utils.config_store`.
"""
from typing import Optional, List
from pathlib import Path
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _opt_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Settings:
    """Settings holder; values are read when the instance is created."""

    def __init__(self) -> None:
        self.TOKEN: Optional[str] = os.getenv("TOKEN")
        self.DEV_GUILD_ID: Optional[int] = _opt_int("DEV_GUILD_ID")
        self.OWNER_ID: Optional[int] = _opt_int("OWNER_ID")
        self.DEV_MODE: bool = _flag("DEV_MODE", "true")
        self.COMMAND_PREFIX: str = os.getenv("COMMAND_PREFIX", "!")

        # Database (wallets); in-memory when unset
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
        self.DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
        self.DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "10"))

        # File locations
        self.DATA_DIR: Path = Path(os.getenv("LOOTFORGE_DATA_DIR", str(Path.cwd() / "data")))
        self.LOOT_CONFIG_PATH: Path = Path(os.getenv("LOOT_CONFIG_PATH", str(self.DATA_DIR / "lootbox.yaml")))

        # Dashboard
        self.DASHBOARD_ENABLED: bool = _flag("DASHBOARD_ENABLED", "false")
        self.DASHBOARD_API_KEY: Optional[str] = os.getenv("DASHBOARD_API_KEY")
        self.DASHBOARD_HOST: str = os.getenv("DASHBOARD_HOST", "127.0.0.1")
        self.DASHBOARD_PORT: int = int(os.getenv("DASHBOARD_PORT", "8000"))

        # Event archive retention
        self.LOG_RETENTION_DAYS: int = int(os.getenv("LOG_RETENTION_DAYS", "30"))

        # Starter currency handed out by the daily command
        self.DAILY_REWARD: int = int(os.getenv("DAILY_REWARD", "250"))

    @property
    def events_path(self) -> Path:
        return self.DATA_DIR / "box_events.jsonl"

    @property
    def inventory_path(self) -> Path:
        return self.DATA_DIR / "inventories.json"

    @property
    def treasury_path(self) -> Path:
        return self.DATA_DIR / "treasury.json"

    @property
    def tokens_path(self) -> Path:
        return self.DATA_DIR / "tokens.json"

    @property
    def pity_path(self) -> Path:
        return self.DATA_DIR / "pity.json"

    def validate(self, required: Optional[List[str]] = None) -> List[str]:
        """Validate required settings.

        Args:
            required: attribute names to check. Defaults to ``["TOKEN"]``.

        Returns:
            A list of missing attribute names (empty if all present).
        """
        if required is None:
            required = ["TOKEN"]

        missing: List[str] = []
        for name in required:
            val = getattr(self, name, None)
            if val is None or (isinstance(val, str) and not val.strip()):
                missing.append(name)

        return missing
