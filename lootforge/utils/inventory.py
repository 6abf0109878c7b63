"""Player inventories: reward items and unopened boxes.

A lightweight store used as the ownership collaborator of the game. It keeps
everything in memory and, when created with a path, mirrors the data to a
JSON file (`data/inventories.json`) after every change.

Layout per player::

    {"items": [{"item_id", "name", "rarity", "power"}], "boxes": ["<token_id>"]}

Changes are made on a copy that replaces the live data only once the file
write succeeded. `revoke` and `return_box` undo earlier changes and update
memory first.
"""
from __future__ import annotations

import copy
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from lootforge.utils.errors import ItemNotFound
from lootforge.utils.models import BoxToken, RewardItem
from lootforge.utils.storage import load_json, save_json

Buckets = Dict[str, Dict[str, List[Any]]]


def _bucket(data: Buckets, owner: str) -> Dict[str, List[Any]]:
    return data.setdefault(str(owner), {"items": [], "boxes": []})


def _pop_item(data: Buckets, owner: str, item_id: str) -> Dict[str, Any]:
    items = _bucket(data, owner)["items"]
    for i, rec in enumerate(items):
        if rec.get("item_id") == item_id:
            return items.pop(i)
    raise ItemNotFound(item_id)


class InventoryStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._data: Buckets = load_json(self.path, {})

    def _draft(self) -> Buckets:
        return copy.deepcopy(self._data)

    def _commit(self, data: Buckets) -> None:
        save_json(self.path, data)
        self._data = data

    # items

    def assign(self, item: RewardItem, owner: str) -> RewardItem:
        """Give a freshly minted item to `owner`."""
        with self._lock:
            data = self._draft()
            _bucket(data, owner)["items"].append(item.to_record())
            self._commit(data)
        return item

    def revoke(self, item_id: str) -> bool:
        """Remove an item from whoever holds it. Used to roll back a draw."""
        with self._lock:
            for bucket in self._data.values():
                for i, rec in enumerate(bucket.get("items", [])):
                    if rec.get("item_id") == item_id:
                        bucket["items"].pop(i)
                        save_json(self.path, self._data)
                        return True
        return False

    def list_items(self, owner: str) -> List[RewardItem]:
        bucket = self._data.get(str(owner), {})
        return [RewardItem.from_record(r) for r in bucket.get("items", [])]

    def get_item(self, owner: str, item_id: str) -> Optional[RewardItem]:
        for item in self.list_items(owner):
            if item.item_id == item_id:
                return item
        return None

    def transfer(self, item_id: str, sender: str, recipient: str) -> RewardItem:
        """Move an item between players. Raises ItemNotFound if `sender` lacks it."""
        with self._lock:
            data = self._draft()
            rec = _pop_item(data, sender, item_id)
            _bucket(data, recipient)["items"].append(rec)
            self._commit(data)
        return RewardItem.from_record(rec)

    def burn(self, item_id: str, owner: str) -> RewardItem:
        """Destroy an item held by `owner`."""
        with self._lock:
            data = self._draft()
            rec = _pop_item(data, owner, item_id)
            self._commit(data)
        return RewardItem.from_record(rec)

    # unopened boxes

    def add_box(self, owner: str, token: BoxToken) -> None:
        with self._lock:
            data = self._draft()
            _bucket(data, owner)["boxes"].append(token.token_id)
            self._commit(data)

    def list_boxes(self, owner: str) -> List[BoxToken]:
        bucket = self._data.get(str(owner), {})
        return [BoxToken(token_id=t) for t in bucket.get("boxes", [])]

    def take_box(self, owner: str) -> Optional[BoxToken]:
        """Remove and return the owner's oldest box, or None."""
        with self._lock:
            if not self._data.get(str(owner), {}).get("boxes"):
                return None
            data = self._draft()
            token_id = _bucket(data, owner)["boxes"].pop(0)
            self._commit(data)
        return BoxToken(token_id=token_id)

    def return_box(self, owner: str, token: BoxToken) -> None:
        """Put a box back at the front of the queue after a failed open."""
        with self._lock:
            _bucket(self._data, owner)["boxes"].insert(0, token.token_id)
            save_json(self.path, self._data)
