"""House treasury that receives box payments.

A running total only, kept in memory and optionally mirrored to
`data/treasury.json` for development.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from lootforge.utils.storage import load_json, save_json


class Treasury:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._balance = self._load()

    def _load(self) -> int:
        try:
            return int(load_json(self.path, {}).get("balance", 0))
        except (ValueError, AttributeError):
            return 0

    def deposit(self, amount: int) -> int:
        """Add a payment and return the new treasury balance."""
        if amount < 0:
            raise ValueError("deposit amount must be non-negative")
        with self._lock:
            balance = self._balance + int(amount)
            save_json(self.path, {"balance": balance})
            self._balance = balance
            return balance

    def withdraw(self, amount: int) -> int:
        """Give back a payment from a cancelled sale."""
        if amount < 0:
            raise ValueError("withdraw amount must be non-negative")
        with self._lock:
            self._balance -= int(amount)
            save_json(self.path, {"balance": self._balance})
            return self._balance

    @property
    def balance(self) -> int:
        return self._balance
