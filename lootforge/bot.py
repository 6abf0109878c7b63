"""Bot factory for lootforge.

Creates the commands.Bot instance, builds the loot box game from settings and
auto-loads every cog in `lootforge.cogs`. The wallet database and the admin
dashboard are started from `setup_hook`, so both run on the bot's own loop and
the dashboard works on the same game the commands use.
"""
from typing import Optional, Tuple
import asyncio
import pkgutil
import discord
import uvicorn
from discord.ext import commands
from discord import Object

from .config import Settings
import lootforge.cogs as cogs_pkg
from lootforge.dashboard import create_app
from lootforge.utils import db as db_utils
from lootforge.utils.auth import AdminCredential
from lootforge.utils.config_store import load_config
from lootforge.utils.inventory import InventoryStore
from lootforge.utils.logger import EventArchive, get_logger
from lootforge.utils.lootbox import LootBoxGame
from lootforge.utils.migrations import apply_migrations
from lootforge.utils.pity import PityTracker
from lootforge.utils.tokens import TokenRegistry
from lootforge.utils.treasury import Treasury

logger = get_logger("lootforge.bot")


def build_game(settings: Settings) -> Tuple[LootBoxGame, AdminCredential]:
    """Create the game and its file-backed collaborators from settings."""
    return LootBoxGame.init(
        load_config(settings.LOOT_CONFIG_PATH, pity=PityTracker(settings.pity_path)),
        treasury=Treasury(settings.treasury_path),
        inventory=InventoryStore(settings.inventory_path),
        events=EventArchive(settings.events_path),
        tokens=TokenRegistry(settings.tokens_path),
    )


class LootforgeBot(commands.Bot):
    def __init__(self, settings: Settings, game: LootBoxGame, admin_credential: AdminCredential, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = settings
        self.game = game
        self.admin_credential = admin_credential
        self._dashboard_task: Optional[asyncio.Task] = None

    async def close(self) -> None:
        try:
            if self._dashboard_task is not None:
                self._dashboard_task.cancel()
            await super().close()
        finally:
            await db_utils.close_pool()

    async def setup_hook(self) -> None:
        if self.settings.DATABASE_URL:
            await db_utils.init_pool(
                self.settings.DATABASE_URL, min_size=self.settings.DB_POOL_MIN, max_size=self.settings.DB_POOL_MAX
            )
            await apply_migrations(self.settings.DATABASE_URL)
            logger.info("DB pool initialized and migrations applied")
        else:
            logger.info("DATABASE_URL not set, wallets are kept in memory")

        for _finder, name, _ispkg in pkgutil.iter_modules(cogs_pkg.__path__):
            full = f"lootforge.cogs.{name}"
            try:
                await self.load_extension(full)
                logger.info("Loaded extension: %s", full)
            except commands.ExtensionError:
                logger.exception("Failed to load extension %s", full)

        if self.settings.DASHBOARD_ENABLED:
            self._dashboard_task = asyncio.create_task(self._serve_dashboard())

        dev_guild = self.settings.DEV_GUILD_ID
        if dev_guild:
            guild_obj = Object(id=int(dev_guild))
            self.tree.copy_global_to(guild=guild_obj)
            await self.tree.sync(guild=guild_obj)
            logger.info("Synced app commands to dev guild %s", dev_guild)

    async def _serve_dashboard(self) -> None:
        app = create_app(self.game, self.admin_credential, self.settings.DASHBOARD_API_KEY)
        config = uvicorn.Config(app, host=self.settings.DASHBOARD_HOST, port=self.settings.DASHBOARD_PORT, log_level="info")
        server = uvicorn.Server(config)
        # leave Ctrl+C to discord.py
        server.install_signal_handlers = lambda: None
        logger.info("Dashboard listening on %s:%s", self.settings.DASHBOARD_HOST, self.settings.DASHBOARD_PORT)
        try:
            await server.serve()
        except Exception:
            logger.exception("Dashboard server stopped")

    async def on_ready(self) -> None:
        logger.info("Logged in as %s (ID: %s)", self.user, getattr(self.user, "id", None))


def create_bot(settings: Settings) -> LootforgeBot:
    intents = discord.Intents.default()
    intents.message_content = True
    game, credential = build_game(settings)
    return LootforgeBot(
        settings,
        game,
        credential,
        command_prefix=settings.COMMAND_PREFIX,
        intents=intents,
        owner_id=settings.OWNER_ID,
    )
