"""Randomness sources for box draws.

The game only needs `randint(low, high)` with an inclusive range, so any
`random.Random` instance satisfies the protocol. Production draws use
`random.SystemRandom`, which cannot be seeded or replayed.
"""
from __future__ import annotations

import random
from typing import Protocol


class RandomnessSource(Protocol):
    def randint(self, a: int, b: int) -> int:
        ...


class SystemRandomness:
    """OS-backed uniform integer draws."""

    def __init__(self) -> None:
        self._rng = random.SystemRandom()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)
