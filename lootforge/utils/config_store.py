"""Game configuration: rarity weights, box price and pity state.

Weights are only replaced through `update_weights`, which validates the full
table before swapping it in, so a rejected update leaves nothing changed.
The optional `data/lootbox.yaml` file supplies initial values:

    price: 100
    weights:
      common: 60
      rare: 25
      epic: 12
      legendary: 3
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import threading

import yaml
from pydantic import ValidationError

from lootforge.utils.errors import InvalidWeights
from lootforge.utils.logger import get_logger
from lootforge.utils.models import DEFAULT_PRICE, DEFAULT_WEIGHTS, WeightTable
from lootforge.utils.pity import PityTracker

logger = get_logger("lootforge.config")


def _build_weights(common: Any, rare: Any, epic: Any, legendary: Any) -> WeightTable:
    values = (common, rare, epic, legendary)
    try:
        return WeightTable(common=common, rare=rare, epic=epic, legendary=legendary)
    except ValidationError as exc:
        errors = exc.errors()
        reason = errors[0].get("msg", "invalid weights") if errors else "invalid weights"
        raise InvalidWeights(values, reason) from None


class ConfigStore:
    """Holds the weight table, the box price and the pity tracker."""

    def __init__(
        self,
        weights: WeightTable = DEFAULT_WEIGHTS,
        price: int = DEFAULT_PRICE,
        pity: Optional[PityTracker] = None,
    ):
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise ValueError(f"box price must be a positive integer, got {price!r}")
        self._weights = weights
        self._price = price
        self._lock = threading.Lock()
        self.pity = pity if pity is not None else PityTracker()

    def get_weights(self) -> Tuple[int, int, int, int]:
        return self._weights.as_tuple()

    @property
    def weights(self) -> WeightTable:
        return self._weights

    def get_price(self) -> int:
        return self._price

    def update_weights(self, common: int, rare: int, epic: int, legendary: int) -> WeightTable:
        """Replace all four weights at once.

        Raises InvalidWeights when the values are not ints in [0, 100] or do
        not sum to 100; the current table is kept in that case. Admin checks
        happen in the caller before this runs.
        """
        table = _build_weights(common, rare, epic, legendary)
        with self._lock:
            self._weights = table
        return table

    def to_dict(self) -> Dict[str, Any]:
        return {"price": self._price, "weights": self._weights.model_dump()}


def load_config(path: Optional[Path] = None, pity: Optional[PityTracker] = None) -> ConfigStore:
    """Create a ConfigStore from YAML, falling back to the built-in defaults.

    A missing file, unreadable YAML or an invalid weight table all yield the
    defaults (60/25/12/3, price 100) and log a warning.
    """
    if path is None or not Path(path).exists():
        return ConfigStore(pity=pity)

    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        logger.warning("Could not read loot config %s, using defaults", path, exc_info=True)
        return ConfigStore(pity=pity)

    if not isinstance(raw, dict):
        logger.warning("Loot config %s is not a mapping, using defaults", path)
        return ConfigStore(pity=pity)

    weights = DEFAULT_WEIGHTS
    section = raw.get("weights")
    if section is not None:
        try:
            weights = _build_weights(
                section.get("common"), section.get("rare"), section.get("epic"), section.get("legendary")
            )
        except (InvalidWeights, AttributeError) as exc:
            logger.warning("Ignoring weights in %s: %s", path, exc)
            weights = DEFAULT_WEIGHTS

    price = raw.get("price", DEFAULT_PRICE)
    if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
        logger.warning("Ignoring price %r in %s, using %s", price, path, DEFAULT_PRICE)
        price = DEFAULT_PRICE

    return ConfigStore(weights=weights, price=price, pity=pity)
