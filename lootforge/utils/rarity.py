"""Rarity tiers and the weighted rarity roll.

`resolve_rarity` is a pure function: the same roll, weight table and pity
counter always give the same tier. The caller owns the randomness.
"""
from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lootforge.utils.models import WeightTable

ROLL_MIN = 0
ROLL_MAX = 99
# consecutive non-legendary results after which the next box is forced legendary
PITY_THRESHOLD = 30


class Rarity(IntEnum):
    """Reward tiers, ordered Common < Rare < Epic < Legendary."""

    COMMON = 0
    RARE = 1
    EPIC = 2
    LEGENDARY = 3

    @property
    def label(self) -> str:
        return self.name.title()

    @classmethod
    def top(cls) -> "Rarity":
        return cls.LEGENDARY

    @classmethod
    def parse(cls, value: str) -> "Rarity":
        """Look up a tier by case-insensitive name (``"epic"`` -> EPIC)."""
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown rarity: {value!r}") from None


def resolve_rarity(roll: int, weights: "WeightTable", pity_counter: int = 0) -> Rarity:
    """Pick a rarity tier for one box.

    Args:
        roll: uniform integer draw in [0, 99].
        weights: the current weight table (sums to 100).
        pity_counter: the player's consecutive non-legendary results.

    Once the pity counter reaches `PITY_THRESHOLD` the result is Legendary
    no matter the roll. Otherwise the roll falls into one of four
    left-inclusive buckets laid out on the running sum of the weights.
    """
    if pity_counter < 0:
        raise ValueError("pity_counter must be non-negative")
    if pity_counter >= PITY_THRESHOLD:
        return Rarity.LEGENDARY

    if not ROLL_MIN <= roll <= ROLL_MAX:
        raise ValueError(f"roll must be within [{ROLL_MIN}, {ROLL_MAX}], got {roll}")

    common, rare, epic, _legendary = weights.as_tuple()
    bound = common
    if roll < bound:
        return Rarity.COMMON
    bound += rare
    if roll < bound:
        return Rarity.RARE
    bound += epic
    if roll < bound:
        return Rarity.EPIC
    return Rarity.LEGENDARY
