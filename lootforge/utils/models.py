"""Pydantic models for loot-box domain objects.

These are small frozen models shared by the game, the cogs and the dashboard.
`to_record` helpers return JSON-ready dicts for the event archive and JSON
file stores.
"""
from __future__ import annotations

import secrets
import time
import uuid
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from lootforge.utils.rarity import Rarity

WEIGHT_TOTAL = 100


class WeightTable(BaseModel):
    """The four rarity weights. Always sums to exactly 100."""

    model_config = ConfigDict(frozen=True)

    common: StrictInt = Field(..., ge=0, le=100)
    rare: StrictInt = Field(..., ge=0, le=100)
    epic: StrictInt = Field(..., ge=0, le=100)
    legendary: StrictInt = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def _check_total(self) -> "WeightTable":
        if self.total() != WEIGHT_TOTAL:
            raise ValueError(f"weights must sum to {WEIGHT_TOTAL}, got {self.total()}")
        return self

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.common, self.rare, self.epic, self.legendary)

    def total(self) -> int:
        # python ints never wrap, so four weights cannot overflow the sum
        return sum(self.as_tuple())

    def for_rarity(self, rarity: Rarity) -> int:
        return self.as_tuple()[int(rarity)]


DEFAULT_WEIGHTS = WeightTable(common=60, rare=25, epic=12, legendary=3)
DEFAULT_PRICE = 100


class BoxToken(BaseModel):
    """Single-use credential redeemable for one draw."""

    model_config = ConfigDict(frozen=True)

    token_id: str = Field(default_factory=lambda: secrets.token_urlsafe(16))


class RewardItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    rarity: Rarity
    power: int

    def to_record(self) -> Dict[str, Any]:
        return {"item_id": self.item_id, "name": self.name, "rarity": self.rarity.name.lower(), "power": self.power}

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "RewardItem":
        return cls(item_id=data["item_id"], name=data["name"], rarity=Rarity.parse(data["rarity"]), power=int(data["power"]))


class OpenEvent(BaseModel):
    """Result notification emitted after a box is opened."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    rarity: Rarity
    power: int
    owner: str
    ts: int = Field(default_factory=lambda: int(time.time()))

    def to_record(self) -> Dict[str, Any]:
        return {
            "event": "box_open",
            "item_id": self.item_id,
            "rarity": self.rarity.name.lower(),
            "power": self.power,
            "owner": self.owner,
            "ts": self.ts,
        }
