"""Exceptions raised by the loot-box engine.

Every error derives from `LootforgeError` so cogs and the dashboard can catch
one base class and show `error.message` to the player.
"""
from __future__ import annotations

from typing import Iterable


class LootforgeError(Exception):
    """Base class for all loot-box errors."""

    def __init__(self, message: str = "Something went wrong with the loot box"):
        self.message = message
        super().__init__(self.message)


class InsufficientPayment(LootforgeError):
    """Payment is below the current box price."""

    def __init__(self, payment: int, price: int):
        self.payment = payment
        self.price = price
        super().__init__(f"A box costs {price}, but only {payment} was paid")


class InvalidWeights(LootforgeError):
    """Rarity weights are malformed or do not sum to 100."""

    def __init__(self, weights: Iterable[object], reason: str = "weights must sum to 100"):
        self.weights = tuple(weights)
        super().__init__(f"Invalid rarity weights {self.weights}: {reason}")


class NotAuthorized(LootforgeError):
    """Caller does not hold a valid admin credential."""

    def __init__(self):
        super().__init__("An admin credential is required for this action")


class InvalidBoxToken(LootforgeError):
    """Box token is unknown to this game or has already been opened."""

    def __init__(self, token_id: str):
        self.token_id = token_id
        super().__init__("This box has already been opened or was never sold")


class ItemNotFound(LootforgeError):
    """Item does not exist in the caller's inventory."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")
