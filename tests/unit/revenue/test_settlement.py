"""Tests for SettlementEngine."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from greenbook.core.exceptions import (
    ContractNotFoundError,
    DataAccessError,
    InsufficientDataError,
    OperationNotAllowedError,
    PartialFailureError,
)
from greenbook.models.allocation import AllocationStatus
from greenbook.revenue.allocations import AllocationStoreManager
from greenbook.revenue.settlement import SettlementEngine
from tests.fakes import CONTRACT_ID, make_allocation, make_contract

JAN = date(2026, 1, 1)
JUN = date(2026, 6, 1)
DEC = date(2026, 12, 1)
SETTLED_AT = datetime(2027, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settlement(stores):
    manager = AllocationStoreManager(contracts=stores.contracts, allocations=stores.allocations)
    return SettlementEngine(contracts=stores.contracts, allocations=manager)


@pytest.fixture
async def short_by_2000(stores):
    """600,000 contract that recognized 300,000 + 298,000."""
    stores.contracts.add_contract(make_contract(contract_amount=600_000))
    await stores.allocations.put_allocation(make_allocation(JUN, 300_000, 300_000))
    await stores.allocations.put_allocation(make_allocation(DEC, 298_000, 598_000))
    return stores


class TestSettle:
    async def test_books_difference_on_last_month(self, settlement, short_by_2000):
        result = await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        assert result.total_recognized_revenue == 598_000
        assert result.adjustment == 2_000
        assert result.allocation.allocation_month == DEC
        assert result.allocation.allocated_revenue == 300_000
        assert result.allocation.adjustment_amount == 2_000
        assert result.allocation.cumulative_revenue == 600_000
        assert result.allocation.status == AllocationStatus.ADJUSTED
        assert result.contract.is_settled is True
        assert result.contract.settled_at == SETTLED_AT
        assert result.contract.settlement_adjustment == 2_000

    async def test_recognized_total_equals_contract_amount(self, settlement, short_by_2000):
        await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)
        rows = await short_by_2000.allocations.list_allocations(CONTRACT_ID)
        assert sum(r.allocated_revenue for r in rows) == 600_000

    async def test_negative_adjustment_when_over_recognized(self, settlement, stores):
        stores.contracts.add_contract(make_contract(contract_amount=500_000))
        await stores.allocations.put_allocation(make_allocation(JAN, 501_000, 501_000))

        result = await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        assert result.adjustment == -1_000
        assert result.allocation.allocated_revenue == 500_000

    async def test_zero_adjustment_still_locks_last_month(self, settlement, stores):
        await stores.allocations.put_allocation(make_allocation(DEC, 1_200_000, 1_200_000))
        result = await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)
        assert result.adjustment == 0
        assert result.allocation.status == AllocationStatus.ADJUSTED

    async def test_second_settlement_is_rejected(self, settlement, short_by_2000):
        await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)
        with pytest.raises(OperationNotAllowedError):
            await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)
        row = await short_by_2000.allocations.get_allocation(CONTRACT_ID, DEC)
        assert row.allocated_revenue == 300_000

    async def test_no_allocations(self, settlement, stores):
        with pytest.raises(InsufficientDataError):
            await settlement.settle(CONTRACT_ID)
        contract = await stores.contracts.get_contract(CONTRACT_ID)
        assert contract.is_settled is False

    async def test_unknown_contract(self, settlement):
        with pytest.raises(ContractNotFoundError):
            await settlement.settle("missing")

    async def test_reports_earlier_adjusted_months(self, settlement, stores):
        await stores.allocations.put_allocation(
            make_allocation(JUN, 600_000, 600_000, status=AllocationStatus.ADJUSTED)
        )
        await stores.allocations.put_allocation(make_allocation(DEC, 500_000, 1_100_000))

        result = await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        assert result.earlier_adjusted_months == [JUN]
        assert result.allocation.allocation_month == DEC
        assert result.adjustment == 100_000


class TestSettleFailures:
    async def test_allocation_write_failure_leaves_contract_open(self, settlement, short_by_2000):
        short_by_2000.allocations.fail("put_allocation")

        with pytest.raises(DataAccessError):
            await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        contract = await short_by_2000.contracts.get_contract(CONTRACT_ID)
        assert contract.is_settled is False

    async def test_contract_write_failure_is_partial(self, settlement, short_by_2000):
        short_by_2000.contracts.fail("mark_settled")

        with pytest.raises(PartialFailureError) as exc_info:
            await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        assert exc_info.value.applied == ["allocation"]
        assert exc_info.value.failed == "contract"
        row = await short_by_2000.allocations.get_allocation(CONTRACT_ID, DEC)
        assert row.status == AllocationStatus.ADJUSTED

    async def test_retry_after_partial_failure_keeps_adjustment(self, settlement, short_by_2000):
        short_by_2000.contracts.fail("mark_settled")
        with pytest.raises(PartialFailureError):
            await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)
        short_by_2000.contracts.heal("mark_settled")

        result = await settlement.settle(CONTRACT_ID, settled_at=SETTLED_AT)

        assert result.total_recognized_revenue == 598_000
        assert result.adjustment == 2_000
        assert result.allocation.allocated_revenue == 300_000
        assert result.allocation.adjustment_amount == 2_000
        assert result.contract.settlement_adjustment == 2_000
        rows = await short_by_2000.allocations.list_allocations(CONTRACT_ID)
        assert sum(r.allocated_revenue for r in rows) == 600_000
