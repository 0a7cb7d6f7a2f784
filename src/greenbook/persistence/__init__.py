"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from typing import NamedTuple

from greenbook.core.config import AppSettings
from greenbook.core.protocols import (
    IActivityStore,
    IAllocationStore,
    IContractLock,
    IContractStore,
    IProjectStore,
)
from greenbook.persistence.dynamodb_backend import (
    DynamoDBActivityStore,
    DynamoDBAllocationStore,
    DynamoDBContractStore,
    DynamoDBProjectStore,
)
from greenbook.persistence.memory_backend import (
    MemoryActivityStore,
    MemoryAllocationStore,
    MemoryContractLock,
    MemoryContractStore,
    MemoryProjectStore,
)
from greenbook.persistence.redis_backend import RedisContractLock


class Persistence(NamedTuple):
    contracts: IContractStore
    projects: IProjectStore
    activity: IActivityStore
    allocations: IAllocationStore
    lock: IContractLock | None


def _create_lock(settings: AppSettings) -> IContractLock | None:
    if settings.lock.backend == "redis":
        return RedisContractLock(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            timeout=settings.lock.timeout_seconds,
            blocking_timeout=settings.lock.blocking_timeout_seconds,
        )
    if settings.lock.backend == "memory":
        return MemoryContractLock(blocking_timeout=settings.lock.blocking_timeout_seconds)
    return None


def create_persistence(settings: AppSettings | None = None) -> Persistence:
    """Create wired-up persistence backends from application settings."""
    if settings is None:
        settings = AppSettings()

    lock = _create_lock(settings)

    if settings.store_backend == "memory":
        return Persistence(
            contracts=MemoryContractStore(),
            projects=MemoryProjectStore(),
            activity=MemoryActivityStore(),
            allocations=MemoryAllocationStore(),
            lock=lock,
        )

    ddb = settings.dynamodb
    kwargs = {
        "table_suffix": ddb.table_suffix,
        "region": ddb.region,
        "endpoint_url": ddb.endpoint_url,
    }
    return Persistence(
        contracts=DynamoDBContractStore(**kwargs),
        projects=DynamoDBProjectStore(**kwargs),
        activity=DynamoDBActivityStore(**kwargs),
        allocations=DynamoDBAllocationStore(**kwargs),
        lock=lock,
    )
