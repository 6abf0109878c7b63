"""Issued box tokens awaiting redemption."""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Set

from lootforge.utils.errors import InvalidBoxToken
from lootforge.utils.models import BoxToken
from lootforge.utils.storage import load_json, save_json


class TokenRegistry:
    """Tracks tokens sold by one game. A token can be consumed exactly once.

    With a path the live set is mirrored to JSON (`data/tokens.json`), so boxes
    sold before a restart can still be opened. `issue` and `consume` write the
    file before changing memory; `restore` and `discard` undo earlier changes
    and update memory first.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._live: Set[str] = set(load_json(self.path, {}).get("live", []))
        self._lock = threading.Lock()

    def _save(self, live: Set[str]) -> None:
        save_json(self.path, {"live": sorted(live)})

    def _commit(self, live: Set[str]) -> None:
        self._save(live)
        self._live = live

    def issue(self) -> BoxToken:
        token = BoxToken()
        with self._lock:
            self._commit(self._live | {token.token_id})
        return token

    def check(self, token: BoxToken) -> None:
        if not isinstance(token, BoxToken) or token.token_id not in self._live:
            raise InvalidBoxToken(getattr(token, "token_id", str(token)))

    def consume(self, token: BoxToken) -> None:
        with self._lock:
            self.check(token)
            self._commit(self._live - {token.token_id})

    def restore(self, token: BoxToken) -> None:
        """Put back a token whose draw was rolled back."""
        with self._lock:
            self._live.add(token.token_id)
            self._save(self._live)

    def discard(self, token: BoxToken) -> None:
        """Withdraw a token whose sale was cancelled."""
        with self._lock:
            self._live.discard(token.token_id)
            self._save(self._live)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, BoxToken) and token.token_id in self._live

    def __len__(self) -> int:
        return len(self._live)
