import pytest

from lootforge.utils.models import DEFAULT_WEIGHTS, WeightTable
from lootforge.utils.rarity import PITY_THRESHOLD, Rarity, resolve_rarity


TABLES = [
    DEFAULT_WEIGHTS,
    WeightTable(common=50, rare=30, epic=15, legendary=5),
    WeightTable(common=0, rare=0, epic=0, legendary=100),
    WeightTable(common=100, rare=0, epic=0, legendary=0),
    WeightTable(common=25, rare=25, epic=25, legendary=25),
    WeightTable(common=0, rare=100, epic=0, legendary=0),
]


@pytest.mark.parametrize("weights", TABLES)
def test_buckets_partition_roll_space(weights):
    counts = {r: 0 for r in Rarity}
    for roll in range(100):
        counts[resolve_rarity(roll, weights, 0)] += 1
    # every roll lands in exactly one tier and each tier gets exactly its weight
    assert sum(counts.values()) == 100
    for rarity in Rarity:
        assert counts[rarity] == weights.for_rarity(rarity)


@pytest.mark.parametrize("weights", TABLES)
def test_buckets_are_contiguous_and_ordered(weights):
    tiers = [resolve_rarity(roll, weights, 0) for roll in range(100)]
    assert tiers == sorted(tiers)


def test_default_scenario_rolls():
    assert resolve_rarity(10, DEFAULT_WEIGHTS, 0) == Rarity.COMMON
    assert resolve_rarity(59, DEFAULT_WEIGHTS, 0) == Rarity.COMMON
    assert resolve_rarity(60, DEFAULT_WEIGHTS, 0) == Rarity.RARE
    assert resolve_rarity(70, DEFAULT_WEIGHTS, 0) == Rarity.RARE
    assert resolve_rarity(85, DEFAULT_WEIGHTS, 0) == Rarity.EPIC
    assert resolve_rarity(90, DEFAULT_WEIGHTS, 0) == Rarity.EPIC
    assert resolve_rarity(97, DEFAULT_WEIGHTS, 0) == Rarity.LEGENDARY
    assert resolve_rarity(99, DEFAULT_WEIGHTS, 0) == Rarity.LEGENDARY


@pytest.mark.parametrize("pity", [PITY_THRESHOLD, PITY_THRESHOLD + 1, 1000])
def test_pity_override_ignores_roll_and_weights(pity):
    no_legendary = WeightTable(common=100, rare=0, epic=0, legendary=0)
    for roll in (0, 10, 50, 99):
        assert resolve_rarity(roll, no_legendary, pity) == Rarity.LEGENDARY
        assert resolve_rarity(roll, DEFAULT_WEIGHTS, pity) == Rarity.LEGENDARY


def test_just_below_threshold_uses_weights():
    assert resolve_rarity(0, DEFAULT_WEIGHTS, PITY_THRESHOLD - 1) == Rarity.COMMON


def test_rejects_bad_inputs():
    with pytest.raises(ValueError):
        resolve_rarity(100, DEFAULT_WEIGHTS, 0)
    with pytest.raises(ValueError):
        resolve_rarity(-1, DEFAULT_WEIGHTS, 0)
    with pytest.raises(ValueError):
        resolve_rarity(5, DEFAULT_WEIGHTS, -1)


def test_rarity_order_and_parse():
    assert Rarity.COMMON < Rarity.RARE < Rarity.EPIC < Rarity.LEGENDARY
    assert Rarity.parse("Epic") is Rarity.EPIC
    assert Rarity.LEGENDARY.label == "Legendary"
    with pytest.raises(ValueError):
        Rarity.parse("mythic")
