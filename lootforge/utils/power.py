"""Power bands per rarity tier."""
from __future__ import annotations

from typing import Dict, Tuple

from lootforge.utils.rarity import Rarity

# closed ranges, disjoint and increasing with rarity
POWER_RANGES: Dict[Rarity, Tuple[int, int]] = {
    Rarity.COMMON: (1, 10),
    Rarity.RARE: (11, 25),
    Rarity.EPIC: (26, 40),
    Rarity.LEGENDARY: (41, 50),
}


def power_range(rarity: Rarity) -> Tuple[int, int]:
    """Return the inclusive (min, max) power for a tier."""
    return POWER_RANGES[Rarity(rarity)]


def generate_power(rarity: Rarity, roll: int) -> int:
    """Return the power for an item of `rarity`.

    `roll` must already be drawn from `power_range(rarity)`; the power is the
    roll itself. A roll outside the band raises ValueError so a caller bug can
    never mint an item outside its tier.
    """
    low, high = power_range(rarity)
    if not low <= roll <= high:
        raise ValueError(f"power roll {roll} outside {Rarity(rarity).label} range [{low}, {high}]")
    return int(roll)
