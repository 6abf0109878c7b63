import json
import time

import pytest

from lootforge.utils import logger as logger_utils


def test_event_archive_appends_jsonl(tmp_path):
    path = tmp_path / "events.jsonl"
    archive = logger_utils.EventArchive(path)
    archive.emit({"event": "box_open", "item_id": "abc", "rarity": "rare", "power": 12, "owner": "1"})
    archive.emit({"event": "box_open", "item_id": "def", "rarity": "common", "power": 3, "owner": "1"})

    lines = [json.loads(l) for l in path.read_text(encoding="utf-8").splitlines()]
    assert [l["item_id"] for l in lines] == ["abc", "def"]
    assert all("ts" in l for l in lines)
    assert archive.recent(1)[0]["item_id"] == "def"


def test_prune_drops_old_entries(tmp_path):
    path = tmp_path / "events.jsonl"
    now = int(time.time())
    rows = [{"ts": now - 40 * 86400, "id": "old"}, {"ts": now, "id": "new"}]
    path.write_text("".join(json.dumps(r) + "\n" for r in rows) + "not json\n", encoding="utf-8")

    kept = logger_utils.prune_jsonl_archive(days=30, archive_path=path)
    assert kept == 2
    content = path.read_text(encoding="utf-8")
    assert "old" not in content and "new" in content


def test_prune_missing_archive(tmp_path):
    assert logger_utils.prune_jsonl_archive(archive_path=tmp_path / "nope.jsonl") == 0


def test_enqueue_without_loop_is_skipped(tmp_path):
    assert logger_utils.enqueue_log({"event": "x"}, tmp_path / "q.jsonl") is False


@pytest.mark.asyncio
async def test_enqueue_keeps_archives_apart(tmp_path):
    purchases, opens = tmp_path / "purchases.jsonl", tmp_path / "opens.jsonl"
    assert logger_utils.enqueue_log({"event": "box_purchase"}, purchases) is True
    assert logger_utils.enqueue_log({"event": "box_open"}, opens) is True

    await logger_utils.start_background_writer(purchases).join()
    await logger_utils.start_background_writer(opens).join()

    assert [json.loads(l)["event"] for l in purchases.read_text(encoding="utf-8").splitlines()] == ["box_purchase"]
    assert [json.loads(l)["event"] for l in opens.read_text(encoding="utf-8").splitlines()] == ["box_open"]
