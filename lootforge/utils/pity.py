"""Per-player pity counters.

Each player has an independent counter of consecutive non-legendary results.
Entries are created lazily on the first draw and are never deleted. With a
path the counters are mirrored to `data/pity.json` and survive restarts.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Optional

from lootforge.utils.storage import load_json, save_json


class PityTracker:
    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._counters: Dict[str, int] = {str(k): int(v) for k, v in load_json(self.path, {}).items()}
        self._lock = threading.Lock()

    def _commit(self, counters: Dict[str, int]) -> None:
        save_json(self.path, counters)
        self._counters = counters

    def get(self, player: str) -> int:
        """Return the player's counter, 0 when they have never drawn."""
        return self._counters.get(str(player), 0)

    def increment(self, player: str) -> int:
        with self._lock:
            key = str(player)
            value = self._counters.get(key, 0) + 1
            self._commit({**self._counters, key: value})
            return value

    def reset(self, player: str) -> None:
        with self._lock:
            self._commit({**self._counters, str(player): 0})

    def snapshot(self, player: str) -> Optional[int]:
        """Raw entry for rollback: None means the player has no entry yet."""
        return self._counters.get(str(player))

    def restore(self, player: str, value: Optional[int]) -> None:
        """Undo a pending update using a value taken with `snapshot`.

        Memory is restored before the file is written, so a failed write
        still leaves the in-process counter correct.
        """
        with self._lock:
            key = str(player)
            if value is None:
                self._counters.pop(key, None)
            else:
                self._counters[key] = value
            save_json(self.path, self._counters)

    def __len__(self) -> int:
        return len(self._counters)

    def _set_for_tests(self, player: str, value: int) -> None:
        """Test hook: force a counter so the pity override can be reached."""
        if value < 0:
            raise ValueError("pity counter must be non-negative")
        with self._lock:
            self._commit({**self._counters, str(player): int(value)})
