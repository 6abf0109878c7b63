"""Loot-box game: buying boxes and opening them into reward items.

`LootBoxGame.open` is the only place randomness is drawn. Both rolls are taken
and consumed inside one locked call, and only the finished item leaves it, so
a caller can never look at a roll and back out before the draw commits.

Opening a box commits four changes together: the pity update, the token
consumption, the item handed to the inventory and the result event. If any
step fails the earlier ones are undone, each undo running even when another
one fails, and the original error is re-raised.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Tuple

from lootforge.utils.auth import AdminCredential, Authority
from lootforge.utils.config_store import ConfigStore
from lootforge.utils.errors import InsufficientPayment, NotAuthorized, InvalidWeights
from lootforge.utils.inventory import InventoryStore
from lootforge.utils.logger import EventArchive, get_logger
from lootforge.utils.models import BoxToken, OpenEvent, RewardItem, WeightTable
from lootforge.utils.power import generate_power, power_range
from lootforge.utils.randomness import RandomnessSource, SystemRandomness
from lootforge.utils.rarity import ROLL_MAX, ROLL_MIN, Rarity, resolve_rarity
from lootforge.utils.tokens import TokenRegistry
from lootforge.utils.treasury import Treasury

logger = get_logger("lootforge.game")

ITEM_NAMES: Dict[Rarity, str] = {
    Rarity.COMMON: "Common Sword",
    Rarity.RARE: "Rare Blade",
    Rarity.EPIC: "Epic Weapon",
    Rarity.LEGENDARY: "Legendary Artifact",
}


def build_item(rarity: Rarity, power: int) -> RewardItem:
    """Mint a reward item with a fresh id; the name depends only on rarity."""
    return RewardItem(name=ITEM_NAMES[rarity], rarity=rarity, power=power)


def _run_undo(steps: List[Callable[[], object]]) -> None:
    """Run rollback steps newest first. A failing step is logged and the rest still run."""
    for step in reversed(steps):
        try:
            step()
        except Exception:
            logger.exception("Rollback step failed")


class LootBoxGame:
    def __init__(
        self,
        config: ConfigStore,
        authority: Authority,
        *,
        treasury: Optional[Treasury] = None,
        inventory: Optional[InventoryStore] = None,
        events: Optional[EventArchive] = None,
        tokens: Optional[TokenRegistry] = None,
        rng: Optional[RandomnessSource] = None,
    ):
        self.config = config
        self.authority = authority
        self.treasury = treasury or Treasury()
        self.inventory = inventory or InventoryStore()
        self.events = events or EventArchive()
        self.rng = rng or SystemRandomness()
        self.tokens = tokens if tokens is not None else TokenRegistry()
        self._lock = threading.RLock()

    @classmethod
    def init(cls, config: Optional[ConfigStore] = None, **collaborators) -> Tuple["LootBoxGame", AdminCredential]:
        """Create a game with default (or given) config and issue its admin credential."""
        authority = Authority()
        game = cls(config or ConfigStore(), authority, **collaborators)
        credential = authority.issue()
        logger.info("Loot box game initialised: weights=%s price=%s", game.get_weights(), game.get_price())
        return game, credential

    # read-only queries

    def get_weights(self) -> Tuple[int, int, int, int]:
        return self.config.get_weights()

    def get_price(self) -> int:
        return self.config.get_price()

    def pity(self, player: str) -> int:
        return self.config.pity.get(player)

    def outstanding_boxes(self) -> int:
        return len(self.tokens)

    # operations

    def purchase(self, payment: int) -> BoxToken:
        """Sell one box. The whole payment goes to the treasury."""
        price = self.get_price()
        if isinstance(payment, bool) or not isinstance(payment, int) or payment < price:
            raise InsufficientPayment(payment, price)
        with self._lock:
            token = self.tokens.issue()
            try:
                self.treasury.deposit(payment)
            except Exception:
                self.tokens.discard(token)
                raise
        logger.info("Box sold for %s (price %s)", payment, price)
        return token

    def cancel_purchase(self, token: BoxToken, payment: int) -> None:
        """Withdraw an unopened box that never reached its buyer and refund the treasury."""
        with self._lock:
            self.tokens.check(token)
            self.tokens.discard(token)
            self.treasury.withdraw(payment)
        logger.info("Box sale cancelled, %s returned from the treasury", payment)

    def open(self, token: BoxToken, player: str, rng: Optional[RandomnessSource] = None) -> RewardItem:
        """Redeem a box token for a reward item owned by `player`."""
        source = rng or self.rng
        player = str(player)
        with self._lock:
            self.tokens.check(token)

            pity_before = self.config.pity.snapshot(player)
            rarity = resolve_rarity(source.randint(ROLL_MIN, ROLL_MAX), self.config.weights, pity_before or 0)
            low, high = power_range(rarity)
            power = generate_power(rarity, source.randint(low, high))
            item = build_item(rarity, power)

            undo: List[Callable[[], object]] = [lambda: self.config.pity.restore(player, pity_before)]
            try:
                if rarity == Rarity.top():
                    self.config.pity.reset(player)
                else:
                    self.config.pity.increment(player)
                self.tokens.consume(token)
                undo.append(lambda: self.tokens.restore(token))
                self.inventory.assign(item, player)
                undo.append(lambda: self.inventory.revoke(item.item_id))
                event = OpenEvent(item_id=item.item_id, rarity=rarity, power=power, owner=player)
                self.events.emit(event.to_record())
            except Exception:
                logger.exception("Box open failed for %s, rolling back", player)
                _run_undo(undo)
                raise

        logger.info("Box opened by %s: %s (power %s)", player, rarity.label, power)
        return item

    def update_weights(self, credential: AdminCredential, common: int, rare: int, epic: int, legendary: int) -> WeightTable:
        try:
            self.authority.verify(credential)
        except NotAuthorized:
            logger.warning("Rejected weight update without a valid admin credential")
            raise
        with self._lock:
            try:
                table = self.config.update_weights(common, rare, epic, legendary)
            except InvalidWeights as exc:
                logger.warning("Rejected weight update: %s", exc.message)
                raise
        logger.info("Weights updated to %s", table.as_tuple())
        return table

    def transfer_item(self, item_id: str, owner: str, recipient: str) -> RewardItem:
        return self.inventory.transfer(item_id, str(owner), str(recipient))

    def burn_item(self, item_id: str, owner: str) -> RewardItem:
        return self.inventory.burn(item_id, str(owner))
