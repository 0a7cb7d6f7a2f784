"""Redis backend implementing IContractLock."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import LockError, RedisError

from greenbook.core.exceptions import ContractBusyError, DataAccessError
from greenbook.core.logging import get_logger

logger = get_logger("persistence.redis")


class RedisContractLock:
    """Production IContractLock: one expiring Redis lock per contract, shared across processes."""

    KEY_PREFIX = "greenbook:lock:contract:"

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 timeout: float = 300.0, blocking_timeout: float = 10.0) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout
        self._client = aioredis.Redis(host=host, port=port, db=db, decode_responses=True)

    @asynccontextmanager
    async def hold(self, contract_id: str) -> AsyncIterator[None]:
        name = f"{self.KEY_PREFIX}{contract_id}"
        try:
            lock = self._client.lock(
                name, timeout=self._timeout, blocking_timeout=self._blocking_timeout,
            )
            acquired = await lock.acquire()
        except RedisError as exc:
            raise DataAccessError(f"Redis lock {name!r} failed: {exc}") from exc
        if not acquired:
            raise ContractBusyError(f"Contract {contract_id!r} is locked by another request")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as exc:
                # Expired while held; another holder may already own it.
                logger.warning("lock %s expired before release: %s", name, exc)
