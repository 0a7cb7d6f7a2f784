"""Allocation Store Manager: guarded reads and writes of monthly allocations."""

from __future__ import annotations

from datetime import date, datetime, timezone

from greenbook.core.exceptions import (
    ConflictError,
    ContractNotFoundError,
    InsufficientDataError,
    OperationNotAllowedError,
)
from greenbook.core.logging import get_logger
from greenbook.core.protocols import IAllocationStore, IContractStore
from greenbook.models.allocation import (
    AllocationStatus,
    CumulativeState,
    MonthlyRevenueAllocation,
)
from greenbook.models.contract import AnnualContract
from greenbook.revenue.months import month_start

logger = get_logger("revenue.allocations")


class AllocationStoreManager:
    """One allocation per (contract, month); adjusted rows and settled contracts are never rewritten."""

    def __init__(self, *, contracts: IContractStore, allocations: IAllocationStore) -> None:
        self._contracts = contracts
        self._allocations = allocations

    async def load_contract(self, contract_id: str) -> AnnualContract:
        contract = await self._contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract

    async def get(self, contract_id: str, month: date) -> MonthlyRevenueAllocation | None:
        return await self._allocations.get_allocation(contract_id, month_start(month))

    async def list_for_contract(self, contract_id: str) -> list[MonthlyRevenueAllocation]:
        """All allocations of a contract, month ascending."""
        rows = await self._allocations.list_allocations(contract_id)
        return sorted(rows, key=lambda a: a.allocation_month)

    async def list_between(self, start: date, end: date) -> list[MonthlyRevenueAllocation]:
        """Allocations of every contract with ``start <= month <= end``."""
        rows = await self._allocations.list_allocations_between(start, end)
        return sorted(rows, key=lambda a: (a.allocation_month, a.annual_contract_id))

    async def previous_state(self, contract_id: str, month: date) -> CumulativeState:
        """Cumulative totals of the latest allocation strictly before ``month``."""
        month = month_start(month)
        earlier = [a for a in await self.list_for_contract(contract_id) if a.allocation_month < month]
        if not earlier:
            return CumulativeState()
        return earlier[-1].cumulative_state

    async def _check_writable(self, contract_id: str, month: date) -> MonthlyRevenueAllocation | None:
        contract = await self.load_contract(contract_id)
        if contract.is_settled:
            raise OperationNotAllowedError(f"Contract {contract_id!r} is settled")
        existing = await self.get(contract_id, month)
        if existing is not None and existing.is_locked:
            raise ConflictError(
                f"Allocation {month.isoformat()} of contract {contract_id!r} is adjusted"
            )
        return existing

    async def save(self, allocation: MonthlyRevenueAllocation) -> MonthlyRevenueAllocation:
        """Upsert ``allocation`` after re-checking the settlement flag and the adjusted lock."""
        await self._check_writable(allocation.annual_contract_id, allocation.allocation_month)
        saved = await self._allocations.put_allocation(allocation)
        logger.debug("saved allocation contract=%s month=%s revenue=%d",
                     saved.annual_contract_id, saved.allocation_month, saved.allocated_revenue)
        return saved

    async def confirm(
        self, contract_id: str, month: date, *, confirmed_at: datetime | None = None
    ) -> MonthlyRevenueAllocation:
        """Mark a provisional allocation as confirmed."""
        month = month_start(month)
        existing = await self._check_writable(contract_id, month)
        if existing is None:
            raise InsufficientDataError(
                f"No allocation for {month.isoformat()} of contract {contract_id!r}"
            )
        if existing.status == AllocationStatus.CONFIRMED:
            return existing
        confirmed = existing.model_copy(update={
            "status": AllocationStatus.CONFIRMED,
            "confirmed_at": confirmed_at or datetime.now(timezone.utc),
        })
        return await self._allocations.put_allocation(confirmed)

    async def apply_settlement(self, allocation: MonthlyRevenueAllocation) -> MonthlyRevenueAllocation:
        """Write the settlement-adjusted final allocation; only settlement may write adjusted rows."""
        return await self._allocations.put_allocation(allocation, allow_adjusted=True)
