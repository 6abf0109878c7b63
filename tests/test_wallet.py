import asyncio

import pytest

from lootforge.utils import db


@pytest.mark.asyncio
async def test_inmemory_debit_and_credit():
    db._inmemory_store.clear()
    uid = "999999"
    db._inmemory_store[uid] = 1000

    assert await db.safe_execute_money_transaction(uid, -200, "box purchase") == 800
    assert await db.safe_execute_money_transaction(uid, 500, "daily") == 1300
    assert await db.get_balance(uid) == 1300


@pytest.mark.asyncio
async def test_inmemory_refuses_negative_balance():
    db._inmemory_store.clear()
    with pytest.raises(db.InsufficientFunds):
        await db.safe_execute_money_transaction("42", -1, "box purchase")
    assert await db.get_balance("42") == 0


@pytest.mark.asyncio
async def test_inmemory_concurrent_debits():
    db._inmemory_store.clear()
    uid = "7"
    db._inmemory_store[uid] = 1000

    async def buyer():
        for _ in range(10):
            await db.safe_execute_money_transaction(uid, -10, "box purchase")

    await asyncio.gather(*(buyer() for _ in range(5)))
    assert db._inmemory_store[uid] == 500
