"""Loot box commands: buy, open, inspect and trade reward items.

All game rules live in `lootforge.utils.lootbox.LootBoxGame` (available as
`bot.game`). This cog moves coins through the wallet helpers, keeps unopened
boxes in the player's inventory and renders results.
"""
from __future__ import annotations

from typing import Optional
import time

import discord
from discord.ext import commands, tasks
from discord import app_commands

from lootforge.utils import db
from lootforge.utils import helpers
from lootforge.utils import odds
from lootforge.utils.errors import InvalidBoxToken, LootforgeError
from lootforge.utils.logger import enqueue_log, get_logger, prune_jsonl_archive
from lootforge.utils.models import BoxToken, RewardItem
from lootforge.utils.perms import is_owner

logger = get_logger("lootforge.cogs.lootbox")


class LootBoxes(commands.Cog):
    """Loot box economy commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self._daily_claims: dict[str, float] = {}

    async def cog_load(self) -> None:
        self._prune_archive.start()

    async def cog_unload(self) -> None:
        self._prune_archive.cancel()

    @property
    def game(self):
        return self.bot.game

    @tasks.loop(hours=24)
    async def _prune_archive(self) -> None:
        settings = self.bot.settings
        kept = prune_jsonl_archive(settings.LOG_RETENTION_DAYS, settings.events_path)
        logger.info("Pruned box event archive, %s entries kept", kept)

    # game flow used by the commands below

    async def _buy_box(self, user_id: str) -> BoxToken:
        """Charge the box price from the player's wallet and store the box.

        Raises db.InsufficientFunds when the wallet cannot cover the price.
        If the sale or the delivery of the box fails, the sale is cancelled
        and the wallet refunded before the error is re-raised.
        """
        price = self.game.get_price()
        await db.safe_execute_money_transaction(user_id, -price, "box purchase")
        token: Optional[BoxToken] = None
        try:
            token = self.game.purchase(price)
            self.game.inventory.add_box(user_id, token)
        except Exception:
            if token is not None:
                try:
                    self.game.cancel_purchase(token, price)
                except Exception:
                    logger.exception("Could not cancel box sale for %s", user_id)
            await db.safe_execute_money_transaction(user_id, price, "box purchase refund")
            raise
        settings = getattr(self.bot, "settings", None)
        if settings is not None:
            enqueue_log({"event": "box_purchase", "user_id": user_id, "price": price}, settings.DATA_DIR / "purchases.jsonl")
        return token

    async def _open_box(self, user_id: str) -> Optional[RewardItem]:
        """Open the player's oldest box. Returns None if they have none.

        A box the game no longer recognises is dropped so it cannot block the
        boxes behind it; any other failure puts the box back.
        """
        token = self.game.inventory.take_box(user_id)
        if token is None:
            return None
        try:
            return self.game.open(token, user_id)
        except InvalidBoxToken:
            logger.warning("Dropped unredeemable box %s held by %s", token.token_id, user_id)
            raise
        except Exception:
            self.game.inventory.return_box(user_id, token)
            raise

    # prefix commands

    @commands.command(name="daily")
    async def daily(self, ctx: commands.Context):
        """Claim free coins once every 24 hours."""
        uid = str(ctx.author.id)
        now = time.time()
        last = self._daily_claims.get(uid, 0)
        if now - last < 86400:
            remaining = int(86400 - (now - last))
            await ctx.send(f"Daily already claimed. Try again in {remaining // 3600}h {(remaining % 3600) // 60}m.")
            return
        amount = self.bot.settings.DAILY_REWARD
        new_bal = await db.safe_execute_money_transaction(uid, amount, "daily")
        self._daily_claims[uid] = now
        await ctx.send(f"You claimed {helpers.format_coins(amount)}. Balance: {helpers.format_coins(new_bal)}")

    @commands.command(name="buybox", aliases=["buy"])
    async def buy_box(self, ctx: commands.Context, count: int = 1):
        """Buy one or more loot boxes."""
        if count <= 0 or count > 10:
            await ctx.send("You can buy between 1 and 10 boxes at a time.")
            return
        uid = str(ctx.author.id)
        bought = 0
        try:
            for _ in range(count):
                await self._buy_box(uid)
                bought += 1
        except db.InsufficientFunds:
            pass
        except LootforgeError as e:
            await ctx.send(e.message)
            return
        if bought == 0:
            await ctx.send(f"A box costs {helpers.format_coins(self.game.get_price())}. You can't afford one.")
            return
        balance = await db.get_balance(uid)
        await ctx.send(f"Bought {bought} box(es). Balance: {helpers.format_coins(balance)}")

    @commands.command(name="openbox", aliases=["open"])
    async def open_box(self, ctx: commands.Context):
        """Open your oldest unopened box."""
        uid = str(ctx.author.id)
        try:
            item = await self._open_box(uid)
        except LootforgeError as e:
            await ctx.send(e.message)
            return
        if item is None:
            await ctx.send("You have no unopened boxes. Use `buybox` first.")
            return
        await ctx.send(embed=helpers.item_embed(item, self.game.pity(uid)))

    @commands.command(name="boxes")
    async def boxes(self, ctx: commands.Context):
        """Show how many unopened boxes you hold."""
        count = len(self.game.inventory.list_boxes(str(ctx.author.id)))
        await ctx.send(f"{helpers.EMOJI['box']} You have {count} unopened box(es).")

    @commands.command(name="items", aliases=["inv", "inventory"])
    async def items(self, ctx: commands.Context, member: Optional[discord.Member] = None):
        """List reward items (defaults to your own)."""
        member = member or ctx.author
        owned = self.game.inventory.list_items(str(member.id))
        if not owned:
            await ctx.send(f"{member.display_name} has no items yet.")
            return
        owned.sort(key=lambda i: (i.rarity, i.power), reverse=True)
        lines = [helpers.format_item(i) for i in owned[:20]]
        if len(owned) > 20:
            lines.append(f"... and {len(owned) - 20} more")
        await ctx.send(embed=helpers.make_embed(f"{member.display_name}'s Items", "\n".join(lines)))

    @commands.command(name="giveitem")
    async def give_item(self, ctx: commands.Context, member: discord.Member, item_id: str):
        """Give one of your items to another player (full id or 8-char prefix)."""
        uid = str(ctx.author.id)
        full_id = self._resolve_item_id(uid, item_id)
        try:
            item = self.game.transfer_item(full_id, uid, str(member.id))
        except LootforgeError as e:
            await ctx.send(e.message)
            return
        await ctx.send(f"Gave {helpers.format_item(item)} to {member.mention}.")

    @commands.command(name="burnitem")
    async def burn_item(self, ctx: commands.Context, item_id: str):
        """Destroy one of your items."""
        uid = str(ctx.author.id)
        full_id = self._resolve_item_id(uid, item_id)
        try:
            item = self.game.burn_item(full_id, uid)
        except LootforgeError as e:
            await ctx.send(e.message)
            return
        await ctx.send(f"Burned {helpers.format_item(item)}.")

    def _resolve_item_id(self, owner: str, prefix: str) -> str:
        matches = [i.item_id for i in self.game.inventory.list_items(owner) if i.item_id.startswith(prefix)]
        return matches[0] if len(matches) == 1 else prefix

    @commands.command(name="pity")
    async def pity(self, ctx: commands.Context):
        """Show how many boxes you've opened since your last legendary."""
        await ctx.send(f"Pity counter: {self.game.pity(str(ctx.author.id))}")

    @commands.command(name="weights")
    async def show_weights(self, ctx: commands.Context):
        """Show the raw rarity weights and box price."""
        common, rare, epic, legendary = self.game.get_weights()
        await ctx.send(
            f"Common {common} / Rare {rare} / Epic {epic} / Legendary {legendary}, "
            f"price {helpers.format_coins(self.game.get_price())}"
        )

    @commands.command(name="odds")
    async def show_odds(self, ctx: commands.Context):
        """Show the current drop rates."""
        info = odds.summary(self.game.config.weights)
        lines = [f"{name.title()}: {p * 100:.1f}%" for name, p in info["probabilities"].items()]
        lines.append(f"Legendary rate incl. pity: {info['legendary_rate_with_pity'] * 100:.2f}%")
        lines.append(f"Guaranteed legendary after {info['pity_threshold']} misses")
        lines.append(f"Box price: {helpers.format_coins(self.game.get_price())}")
        await ctx.send(embed=helpers.make_embed("Drop Rates", "\n".join(lines)))

    @commands.command(name="setweights")
    @is_owner()
    async def set_weights(self, ctx: commands.Context, common: int, rare: int, epic: int, legendary: int):
        """Owner: replace the rarity weights (must sum to 100)."""
        try:
            table = self.game.update_weights(self.bot.admin_credential, common, rare, epic, legendary)
        except LootforgeError as e:
            await ctx.send(e.message)
            return
        await ctx.send(f"Weights updated: {'/'.join(str(w) for w in table.as_tuple())}")

    # slash commands

    @app_commands.command(name="openbox", description="Open your oldest unopened loot box")
    async def slash_open_box(self, interaction: discord.Interaction):
        uid = str(interaction.user.id)
        try:
            item = await self._open_box(uid)
        except LootforgeError as e:
            await interaction.response.send_message(e.message, ephemeral=True)
            return
        if item is None:
            await interaction.response.send_message("You have no unopened boxes.", ephemeral=True)
            return
        await interaction.response.send_message(embed=helpers.item_embed(item, self.game.pity(uid)))

    @app_commands.command(name="buybox", description="Buy a loot box")
    async def slash_buy_box(self, interaction: discord.Interaction):
        uid = str(interaction.user.id)
        try:
            await self._buy_box(uid)
        except db.InsufficientFunds:
            await interaction.response.send_message(
                f"A box costs {helpers.format_coins(self.game.get_price())}. You can't afford one.", ephemeral=True
            )
            return
        await interaction.response.send_message(f"{helpers.EMOJI['box']} Box purchased!", ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(LootBoxes(bot))
