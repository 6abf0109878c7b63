"""JSON file mirrors for the game's small stores.

Writes go to a temporary file that replaces the target, so a failed write
leaves the previous contents in place.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from lootforge.utils.logger import get_logger

logger = get_logger("lootforge.storage")


def load_json(path: Optional[Path], default: Any) -> Any:
    if path is None or not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        logger.warning("Could not parse %s, starting empty", path)
        return default


def save_json(path: Optional[Path], data: Any) -> None:
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
    tmp.replace(path)
