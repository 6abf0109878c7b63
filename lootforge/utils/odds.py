"""Drop-rate analysis for a weight table.

Used by the `odds` command, the dashboard and `scripts/simulate_drops.py` to
check what players actually get once the pity guarantee kicks in.
"""
from __future__ import annotations

from typing import Dict, Optional

from lootforge.utils.models import WeightTable
from lootforge.utils.power import power_range
from lootforge.utils.randomness import RandomnessSource, SystemRandomness
from lootforge.utils.rarity import PITY_THRESHOLD, ROLL_MAX, ROLL_MIN, Rarity, resolve_rarity


def tier_probabilities(weights: WeightTable) -> Dict[Rarity, float]:
    """Per-box chance of each tier ignoring pity."""
    total = weights.total()
    return {r: weights.for_rarity(r) / total for r in Rarity}


def expected_power(weights: WeightTable) -> float:
    probs = tier_probabilities(weights)
    out = 0.0
    for rarity, p in probs.items():
        low, high = power_range(rarity)
        out += p * (low + high) / 2
    return out


def legendary_rate_with_pity(weights: WeightTable, threshold: int = PITY_THRESHOLD) -> float:
    """Long-run share of legendary results with the pity guarantee.

    The number of boxes between legendaries is min(Geometric(p), threshold + 1),
    whose mean is sum_{k=0}^{threshold} (1 - p)^k.
    """
    p = tier_probabilities(weights)[Rarity.LEGENDARY]
    miss = 1.0 - p
    mean_gap = sum(miss ** k for k in range(threshold + 1))
    return 1.0 / mean_gap


def simulate(weights: WeightTable, pulls: int, rng: Optional[RandomnessSource] = None) -> Dict[str, object]:
    """Open `pulls` boxes for one simulated player and count the results."""
    rng = rng or SystemRandomness()
    counts = {r: 0 for r in Rarity}
    pity = 0
    forced = 0
    for _ in range(pulls):
        if pity >= PITY_THRESHOLD:
            forced += 1
        rarity = resolve_rarity(rng.randint(ROLL_MIN, ROLL_MAX), weights, pity)
        counts[rarity] += 1
        pity = 0 if rarity == Rarity.LEGENDARY else pity + 1
    return {
        "pulls": pulls,
        "counts": {r.name.lower(): n for r, n in counts.items()},
        "rates": {r.name.lower(): (n / pulls if pulls else 0.0) for r, n in counts.items()},
        "pity_forced": forced,
    }


def summary(weights: WeightTable) -> Dict[str, object]:
    """Analytic odds as a JSON-ready dict."""
    return {
        "weights": weights.model_dump(),
        "probabilities": {r.name.lower(): round(p, 4) for r, p in tier_probabilities(weights).items()},
        "expected_power": round(expected_power(weights), 2),
        "legendary_rate_with_pity": round(legendary_rate_with_pity(weights), 4),
        "pity_threshold": PITY_THRESHOLD,
    }
