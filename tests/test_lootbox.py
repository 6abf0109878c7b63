import pytest

from lootforge.utils.errors import InsufficientPayment, InvalidBoxToken, InvalidWeights, NotAuthorized
from lootforge.utils.inventory import InventoryStore
from lootforge.utils.logger import EventArchive
from lootforge.utils.lootbox import ITEM_NAMES, LootBoxGame, build_item
from lootforge.utils.models import BoxToken
from lootforge.utils.power import power_range
from lootforge.utils.rarity import PITY_THRESHOLD, Rarity
from lootforge.utils.treasury import Treasury


def test_purchase_requires_full_price(game):
    token = game.purchase(100)
    assert isinstance(token, BoxToken)
    assert game.treasury.balance == 100
    assert game.outstanding_boxes() == 1

    with pytest.raises(InsufficientPayment):
        game.purchase(50)
    assert game.treasury.balance == 100
    assert game.outstanding_boxes() == 1


def test_overpayment_goes_to_treasury(game):
    game.purchase(150)
    assert game.treasury.balance == 150


@pytest.mark.parametrize(
    "roll1,roll2,rarity",
    [(10, 5, Rarity.COMMON), (70, 20, Rarity.RARE), (90, 30, Rarity.EPIC), (99, 45, Rarity.LEGENDARY)],
)
def test_open_default_scenarios(game, scripted, roll1, roll2, rarity):
    token = game.purchase(100)
    scripted.push(roll1, roll2)
    item = game.open(token, "alice")

    assert item.rarity == rarity
    assert item.power == roll2
    assert item.name == ITEM_NAMES[rarity]
    # second draw is constrained to the tier's power band
    assert scripted.calls == [(0, 99), power_range(rarity)]
    assert game.inventory.get_item("alice", item.item_id) == item
    assert game.outstanding_boxes() == 0


def test_pity_increments_then_resets_on_rolled_legendary(game, scripted):
    for expected in (1, 2, 3):
        token = game.purchase(100)
        scripted.push(10, 1)
        game.open(token, "bob")
        assert game.pity("bob") == expected

    token = game.purchase(100)
    scripted.push(98, 50)
    assert game.open(token, "bob").rarity == Rarity.LEGENDARY
    assert game.pity("bob") == 0


def test_pity_override_forces_legendary(game, scripted):
    game.config.pity._set_for_tests("carol", PITY_THRESHOLD)
    token = game.purchase(100)
    scripted.push(0, 41)
    item = game.open(token, "carol")
    assert item.rarity == Rarity.LEGENDARY
    assert 41 <= item.power <= 50
    assert game.pity("carol") == 0


def test_thirty_misses_guarantee_legendary(scripted):
    game, admin = LootBoxGame.init(rng=scripted)
    game.update_weights(admin, 100, 0, 0, 0)
    for _ in range(PITY_THRESHOLD):
        token = game.purchase(100)
        scripted.push(99, 10)
        assert game.open(token, "dave").rarity == Rarity.COMMON
    assert game.pity("dave") == PITY_THRESHOLD

    token = game.purchase(100)
    scripted.push(99, 50)
    assert game.open(token, "dave").rarity == Rarity.LEGENDARY
    assert game.pity("dave") == 0


def test_token_is_single_use(game, scripted):
    token = game.purchase(100)
    scripted.push(10, 3)
    game.open(token, "erin")

    with pytest.raises(InvalidBoxToken):
        game.open(token, "erin")
    assert game.pity("erin") == 1
    assert len(game.inventory.list_items("erin")) == 1
    # rejected before any randomness was drawn
    assert scripted.calls == [(0, 99), (1, 10)]


def test_foreign_and_forged_tokens_rejected(game, scripted):
    other, _ = LootBoxGame.init(rng=scripted)
    foreign = other.purchase(100)
    with pytest.raises(InvalidBoxToken):
        game.open(foreign, "frank")
    with pytest.raises(InvalidBoxToken):
        game.open(BoxToken(token_id="made-up"), "frank")
    assert game.config.pity.snapshot("frank") is None


def test_open_event_has_result_fields_only(game, scripted):
    token = game.purchase(100)
    scripted.push(90, 33)
    item = game.open(token, "gina")
    (event,) = game.events.recent()
    assert event["event"] == "box_open"
    assert event["item_id"] == item.item_id
    assert event["rarity"] == "epic"
    assert event["power"] == 33
    assert event["owner"] == "gina"
    assert "roll" not in event


def test_failed_ownership_handoff_rolls_back(game, scripted, monkeypatch):
    game.config.pity._set_for_tests("hank", 4)
    token = game.purchase(100)

    def broken_assign(item, owner):
        raise OSError("disk full")

    monkeypatch.setattr(game.inventory, "assign", broken_assign)
    scripted.push(10, 2)
    with pytest.raises(OSError):
        game.open(token, "hank")

    assert game.pity("hank") == 4
    assert token in game.tokens
    assert game.inventory.list_items("hank") == []
    assert game.events.recent() == []


def test_failed_event_rolls_back_everything(game, scripted, monkeypatch):
    token = game.purchase(100)

    def broken_emit(event):
        raise OSError("archive unavailable")

    monkeypatch.setattr(game.events, "emit", broken_emit)
    scripted.push(99, 50)
    with pytest.raises(OSError):
        game.open(token, "ivy")

    assert game.config.pity.snapshot("ivy") is None
    assert token in game.tokens
    assert game.inventory.list_items("ivy") == []

    # the box still opens once the archive recovers
    monkeypatch.undo()
    scripted.push(10, 1)
    assert game.open(token, "ivy").rarity == Rarity.COMMON


def test_randomness_failure_changes_nothing(game):
    class Exhausted:
        def randint(self, a, b):
            raise RuntimeError("entropy source unavailable")

    token = game.purchase(100)
    with pytest.raises(RuntimeError):
        game.open(token, "jack", rng=Exhausted())
    assert token in game.tokens
    assert game.config.pity.snapshot("jack") is None


def test_update_weights_requires_credential(game, admin):
    game.update_weights(admin, 50, 30, 15, 5)
    assert game.get_weights() == (50, 30, 15, 5)

    with pytest.raises(InvalidWeights):
        game.update_weights(admin, 40, 30, 20, 20)
    assert game.get_weights() == (50, 30, 15, 5)

    _other_game, other_admin = LootBoxGame.init()
    with pytest.raises(NotAuthorized):
        game.update_weights(other_admin, 25, 25, 25, 25)
    with pytest.raises(NotAuthorized):
        game.update_weights(None, 25, 25, 25, 25)
    assert game.get_weights() == (50, 30, 15, 5)


def test_new_weights_apply_to_next_draw(game, admin, scripted):
    game.update_weights(admin, 0, 0, 0, 100)
    token = game.purchase(100)
    scripted.push(0, 42)
    assert game.open(token, "kim").rarity == Rarity.LEGENDARY


def test_transfer_and_burn(game, scripted):
    token = game.purchase(100)
    scripted.push(70, 12)
    item = game.open(token, "lee")

    moved = game.transfer_item(item.item_id, "lee", "max")
    assert moved == item
    assert game.inventory.list_items("lee") == []

    burned = game.burn_item(item.item_id, "max")
    assert burned.item_id == item.item_id
    assert game.inventory.list_items("max") == []


def test_build_item_ids_are_unique():
    a = build_item(Rarity.RARE, 12)
    b = build_item(Rarity.RARE, 12)
    assert a.item_id != b.item_id
    assert a.name == b.name == "Rare Blade"


def _unwritable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return blocker / "inventories.json"


def test_inventory_write_failure_leaves_no_item(tmp_path, scripted):
    inventory = InventoryStore(tmp_path / "inventories.json")
    game, _ = LootBoxGame.init(rng=scripted, inventory=inventory)
    game.config.pity._set_for_tests("nina", 4)
    token = game.purchase(100)

    inventory.path = _unwritable(tmp_path)
    scripted.push(10, 5)
    with pytest.raises(OSError):
        game.open(token, "nina")
    assert inventory.list_items("nina") == []
    assert token in game.tokens
    assert game.pity("nina") == 4
    assert game.events.recent() == []

    # once the disk recovers the same box yields exactly one item
    inventory.path = tmp_path / "inventories.json"
    scripted.push(10, 5)
    game.open(token, "nina")
    assert len(inventory.list_items("nina")) == 1
    with pytest.raises(InvalidBoxToken):
        game.open(token, "nina")


def test_rollback_completes_when_undo_write_fails(tmp_path, scripted, monkeypatch):
    inventory = InventoryStore(tmp_path / "inventories.json")
    archive_dir = tmp_path / "archive"
    archive_dir.mkdir()
    events = EventArchive(archive_dir)
    game, _ = LootBoxGame.init(rng=scripted, inventory=inventory, events=events)
    game.config.pity._set_for_tests("otto", 4)
    token = game.purchase(100)

    real_emit = events.emit

    def emit_during_outage(record):
        inventory.path = _unwritable(tmp_path)
        real_emit(record)

    monkeypatch.setattr(events, "emit", emit_during_outage)
    scripted.push(10, 5)
    with pytest.raises(OSError):
        game.open(token, "otto")

    assert game.pity("otto") == 4
    assert token in game.tokens
    assert inventory.list_items("otto") == []


def test_treasury_failure_cancels_the_sale(tmp_path):
    game, _ = LootBoxGame.init(treasury=Treasury(_unwritable(tmp_path)))
    with pytest.raises(OSError):
        game.purchase(100)
    assert game.treasury.balance == 0
    assert game.outstanding_boxes() == 0


def test_cancel_purchase_returns_payment(game):
    token = game.purchase(120)
    game.cancel_purchase(token, 120)
    assert game.treasury.balance == 0
    assert token not in game.tokens
    with pytest.raises(InvalidBoxToken):
        game.cancel_purchase(token, 120)
