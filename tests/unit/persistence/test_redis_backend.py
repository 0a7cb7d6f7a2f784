"""Unit tests for RedisContractLock using fakeredis."""

from __future__ import annotations

from unittest.mock import patch

import fakeredis
import pytest

from greenbook.core.exceptions import ContractBusyError, DataAccessError
from greenbook.persistence.redis_backend import RedisContractLock


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


def _lock(server, **kwargs) -> RedisContractLock:
    client = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
    with patch("redis.asyncio.Redis", return_value=client):
        return RedisContractLock(host="localhost", port=6379, db=0, **kwargs)


class TestHold:
    async def test_holds_key_while_inside(self, fake_server):
        lock = _lock(fake_server)
        observer = fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)
        key = f"{RedisContractLock.KEY_PREFIX}c-1"

        async with lock.hold("c-1"):
            assert await observer.exists(key) == 1
        assert await observer.exists(key) == 0

    async def test_lock_expires(self, fake_server):
        lock = _lock(fake_server, timeout=30)
        observer = fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)

        async with lock.hold("c-1"):
            ttl = await observer.pttl(f"{RedisContractLock.KEY_PREFIX}c-1")
            assert 0 < ttl <= 30_000

    async def test_second_holder_is_busy(self, fake_server):
        first = _lock(fake_server)
        second = _lock(fake_server, blocking_timeout=0.1)

        async with first.hold("c-1"):
            with pytest.raises(ContractBusyError):
                async with second.hold("c-1"):
                    pass

    async def test_other_contracts_are_independent(self, fake_server):
        first = _lock(fake_server)
        second = _lock(fake_server, blocking_timeout=0.1)

        async with first.hold("c-1"):
            async with second.hold("c-2"):
                pass

    async def test_reacquire_after_release(self, fake_server):
        lock = _lock(fake_server, blocking_timeout=0.1)
        async with lock.hold("c-1"):
            pass
        async with lock.hold("c-1"):
            pass


class TestErrorWrapping:
    async def test_unreachable_server_is_data_access_error(self, fake_server):
        lock = _lock(fake_server)
        fake_server.connected = False
        with pytest.raises(DataAccessError):
            async with lock.hold("c-1"):
                pass
