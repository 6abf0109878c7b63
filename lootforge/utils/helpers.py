"""Small formatting helpers and embed templates."""
from typing import Dict, Optional
import discord

from lootforge.utils.models import RewardItem
from lootforge.utils.rarity import Rarity

EMOJI: Dict[str, str] = {
    "coins": "🪙",
    "box": "🎁",
}

RARITY_COLOURS: Dict[Rarity, int] = {
    Rarity.COMMON: 0x9E9E9E,
    Rarity.RARE: 0x2196F3,
    Rarity.EPIC: 0x9C27B0,
    Rarity.LEGENDARY: 0xFF9800,
}


def make_embed(title: str, description: str, colour: Optional[int] = None) -> discord.Embed:
    e = discord.Embed(title=title, description=description)
    if colour is not None:
        e.colour = colour
    return e


def format_coins(amount: int) -> str:
    return f"{EMOJI['coins']} {amount}"


def format_item(item: RewardItem) -> str:
    """One-line item summary, e.g. ``Epic Weapon (Epic, power 31) `ab12cd34` ``."""
    return f"{item.name} ({item.rarity.label}, power {item.power}) `{item.item_id[:8]}`"


def item_embed(item: RewardItem, pity_after: int) -> discord.Embed:
    e = make_embed(f"{EMOJI['box']} You opened a box!", format_item(item), RARITY_COLOURS[item.rarity])
    e.set_footer(text=f"Pity counter: {pity_after}")
    return e
