from typing import Iterable, List

import pytest

from lootforge.utils.lootbox import LootBoxGame


class ScriptedRandomness:
    """Returns queued values in order; each must fall inside the requested range."""

    def __init__(self, values: Iterable[int] = ()):
        self.values: List[int] = list(values)
        self.calls: List[tuple] = []

    def push(self, *values: int) -> None:
        self.values.extend(values)

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        value = self.values.pop(0)
        assert a <= value <= b, f"scripted value {value} outside [{a}, {b}]"
        return value


@pytest.fixture
def scripted():
    return ScriptedRandomness()


@pytest.fixture
def game_and_cred(scripted):
    return LootBoxGame.init(rng=scripted)


@pytest.fixture
def game(game_and_cred):
    return game_and_cred[0]


@pytest.fixture
def admin(game_and_cred):
    return game_and_cred[1]
