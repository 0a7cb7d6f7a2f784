"""Integration tests for the DynamoDB stores and Redis lock against LocalStack."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from greenbook.core.config import AppSettings
from greenbook.persistence.dynamodb_backend import (
    DynamoDBActivityStore,
    DynamoDBAllocationStore,
    DynamoDBContractStore,
    DynamoDBProjectStore,
)
from greenbook.persistence.redis_backend import RedisContractLock
from greenbook.revenue.engine import RevenueEngine
from tests.integration.conftest import (
    LOCALSTACK_URL,
    REDIS_HOST,
    REGION,
    skip_no_localstack,
    skip_no_redis,
)

SAMPLE_CONTRACT_ID = "sample-park-2026"


@skip_no_localstack
class TestDynamoDBIntegration:
    @pytest.fixture
    def stores(self, seeded_tables):
        kwargs = {"table_suffix": seeded_tables, "region": REGION, "endpoint_url": LOCALSTACK_URL}
        return {
            "contracts": DynamoDBContractStore(**kwargs),
            "projects": DynamoDBProjectStore(**kwargs),
            "activity": DynamoDBActivityStore(**kwargs),
            "allocations": DynamoDBAllocationStore(**kwargs),
        }

    async def test_seeded_contract(self, stores):
        contract = await stores["contracts"].get_contract(SAMPLE_CONTRACT_ID)
        assert contract.contract_amount == 1_200_000

    async def test_seeded_projects(self, stores):
        project_ids = await stores["projects"].list_project_ids(SAMPLE_CONTRACT_ID)
        assert sorted(project_ids) == ["proj-mowing-2026", "proj-pruning-2026"]

    async def test_recalculates_seeded_april(self, stores):
        engine = RevenueEngine(settings=AppSettings(), **stores)
        row = await engine.calculate_month(SAMPLE_CONTRACT_ID, date(2026, 4, 1))
        # 8 + 7.5 + 6 hours against a 1,000 hour budget
        assert row.actual_hours == Decimal("21.5")
        assert row.cumulative_revenue == 25_800


@skip_no_redis
class TestRedisLockIntegration:
    async def test_acquire_and_release(self):
        lock = RedisContractLock(host=REDIS_HOST, blocking_timeout=1.0)
        async with lock.hold("integration-contract"):
            pass
        async with lock.hold("integration-contract"):
            pass
