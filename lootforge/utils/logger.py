"""Logging utilities for lootforge.

Configures standard library loggers and provides the box event archive: a
JSONL file that receives one line per opened box. An asyncio queue writer is
available for cogs that want to archive without blocking the event loop.
"""
import logging
import asyncio
import json
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

_queues: Dict[Path, asyncio.Queue] = {}


def get_logger(name: str = "lootforge") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def _append_jsonl(path: Path, item: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(item, default=str, ensure_ascii=False) + "\n")


class EventArchive:
    """Event sink for box results.

    Every event is logged and kept in memory; when `path` is set it is also
    appended to a JSONL archive. Write errors propagate so the caller can
    abort the operation that produced the event.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._events: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        self._logger = get_logger("lootforge.events")

    def emit(self, event: Dict[str, Any]) -> None:
        record = dict(event)
        record.setdefault("ts", int(time.time()))
        with self._lock:
            if self.path is not None:
                _append_jsonl(self.path, record)
            self._events.append(record)
        self._logger.info("EVENT: %s", record)

    def recent(self, limit: int = 20) -> List[Dict[str, Any]]:
        return list(self._events[-limit:])


def start_background_writer(archive_path: Path, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Queue:
    """Start a background queue and writer coroutine for one archive file.

    Returns the queue for `archive_path`; callers put dicts on it and the
    writer appends them to that file off the command path. Each path gets its
    own queue and writer.
    """
    archive_path = Path(archive_path)
    existing = _queues.get(archive_path)
    if existing is not None:
        return existing

    if loop is None:
        loop = asyncio.get_event_loop()

    queue: asyncio.Queue = asyncio.Queue()
    _queues[archive_path] = queue

    async def _writer():
        logger = get_logger("lootforge.logger_writer")
        while True:
            item = await queue.get()
            try:
                if isinstance(item, dict) and "ts" not in item:
                    item["ts"] = int(time.time())
                _append_jsonl(archive_path, item)
            except Exception:
                logger.exception("Failed to append to log archive %s", archive_path)
            finally:
                queue.task_done()

    loop.create_task(_writer())
    return queue


def enqueue_log(item: Dict[str, Any], archive_path: Path) -> bool:
    """Enqueue an item for asynchronous writing.

    Lazily starts the background writer. Returns False when there is no
    running event loop and the item was not queued.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return False
    q = start_background_writer(archive_path, loop)
    q.put_nowait(item)
    return True


def prune_jsonl_archive(days: int = 30, archive_path: Optional[Path] = None) -> int:
    """Prune entries older than `days` from a JSONL archive.

    Returns the number of kept entries. Lines that cannot be parsed are kept.
    """
    if archive_path is None or not archive_path.exists():
        return 0

    cutoff = int(time.time()) - int(days) * 24 * 60 * 60
    kept = []
    with archive_path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                obj = json.loads(line)
                ts = int(obj.get("ts") or 0)
            except (ValueError, AttributeError, TypeError):
                kept.append(line)
                continue
            if ts >= cutoff:
                kept.append(line)
    tmp = archive_path.with_suffix(".tmp")
    with tmp.open("w", encoding="utf-8") as out:
        for l in kept:
            out.write(l)
    tmp.replace(archive_path)
    return len(kept)
