"""Wallet database helpers for lootforge.

Provides an asyncpg pool factory, a transaction context manager and an atomic
balance change helper used when players buy boxes. When no pool has been
initialised the helpers fall back to an in-memory store so the bot and the
tests run without Postgres.

Tables (see `migrations/001_wallets.sql`)::

    wallets(user_id text primary key, balance bigint, created_at timestamptz)
    wallet_transactions(id serial primary key, user_id text, delta bigint,
                        reason text, balance_after bigint, created_at timestamptz)
"""
from typing import Optional, AsyncIterator
import contextlib
import logging
from datetime import datetime, timezone
import asyncio

import asyncpg

logger = logging.getLogger("lootforge.db")

_pool: Optional[asyncpg.pool.Pool] = None

# In-memory fallback store for development when no Postgres pool is available.
_inmemory_store: dict[str, int] = {}
_inmemory_lock = asyncio.Lock()


class InsufficientFunds(RuntimeError):
    """A debit would take a wallet below zero."""


async def init_pool(dsn: str, *, min_size: int = 1, max_size: int = 10) -> asyncpg.pool.Pool:
    """Initialize an asyncpg pool and return it."""
    global _pool
    if _pool is not None:
        return _pool
    _pool = await asyncpg.create_pool(dsn, min_size=min_size, max_size=max_size)
    logger.info("DB pool initialized (min=%s max=%s)", min_size, max_size)
    return _pool


def get_pool() -> Optional[asyncpg.pool.Pool]:
    """Return the active asyncpg pool or None if not initialized."""
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@contextlib.asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """Yield a pooled connection inside a transaction.

    Raises `RuntimeError` if the pool isn't initialized.
    """
    pool = get_pool()
    if pool is None:
        raise RuntimeError("DB pool not initialized. Call init_pool(dsn) first.")

    async with pool.acquire() as connection:
        async with connection.transaction():
            yield connection


async def get_balance(user_id: str) -> int:
    pool = get_pool()
    if pool is None:
        return _inmemory_store.get(str(user_id), 0)
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT balance FROM wallets WHERE user_id = $1", str(user_id))
        return row["balance"] if row else 0


async def safe_execute_money_transaction(user_id: str, delta: int, reason: str) -> int:
    """Atomically change a wallet balance and record the change.

    Locks the wallet row with SELECT ... FOR UPDATE, creates it at 0 when
    missing and raises InsufficientFunds instead of going negative. Returns
    the new balance.
    """
    key = str(user_id)
    pool = get_pool()
    if pool is None:
        async with _inmemory_lock:
            new_balance = _inmemory_store.get(key, 0) + delta
            if new_balance < 0:
                raise InsufficientFunds("Insufficient funds")
            _inmemory_store[key] = new_balance
            return new_balance

    async with transaction() as conn:
        row = await conn.fetchrow("SELECT balance FROM wallets WHERE user_id = $1 FOR UPDATE", key)
        now = datetime.now(timezone.utc)
        if row is None:
            current = 0
            await conn.execute("INSERT INTO wallets (user_id, balance, created_at) VALUES ($1, $2, $3)", key, 0, now)
        else:
            current = row["balance"]

        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientFunds("Insufficient funds")

        await conn.execute("UPDATE wallets SET balance = $1 WHERE user_id = $2", new_balance, key)
        await conn.execute(
            "INSERT INTO wallet_transactions (user_id, delta, reason, balance_after, created_at) VALUES ($1, $2, $3, $4, $5)",
            key,
            delta,
            reason,
            new_balance,
            now,
        )
        return new_balance
