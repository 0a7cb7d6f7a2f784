"""In-memory backends for unit tests and local runs: dict-backed fakes."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

from greenbook.core.exceptions import (
    ConflictError,
    ContractBusyError,
    ContractNotFoundError,
    DataAccessError,
    OperationNotAllowedError,
)
from greenbook.models.activity import WorkActivity
from greenbook.models.allocation import MonthlyRevenueAllocation
from greenbook.models.contract import AnnualContract


class _Faults:
    """Lets tests make named operations fail with DataAccessError."""

    def __init__(self) -> None:
        self._failing: set[str] = set()

    def fail(self, operation: str) -> None:
        self._failing.add(operation)

    def heal(self, operation: str) -> None:
        self._failing.discard(operation)

    def _check(self, operation: str) -> None:
        if operation in self._failing:
            raise DataAccessError(f"{self.__class__.__name__}.{operation} unavailable")


class MemoryContractStore(_Faults):
    """Dict-backed IContractStore."""

    def __init__(self) -> None:
        super().__init__()
        self._contracts: dict[str, AnnualContract] = {}

    def add_contract(self, contract: AnnualContract) -> None:
        self._contracts[contract.id] = contract.model_copy(deep=True)

    async def get_contract(self, contract_id: str) -> AnnualContract | None:
        self._check("get_contract")
        contract = self._contracts.get(contract_id)
        return contract.model_copy(deep=True) if contract else None

    async def mark_settled(
        self, contract_id: str, settled_at: datetime, adjustment: int
    ) -> AnnualContract:
        self._check("mark_settled")
        contract = self._contracts.get(contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        if contract.is_settled:
            raise OperationNotAllowedError(f"Contract {contract_id!r} is already settled")
        settled = contract.model_copy(update={
            "is_settled": True,
            "settled_at": settled_at,
            "settlement_adjustment": adjustment,
        })
        self._contracts[contract_id] = settled
        return settled.model_copy(deep=True)


class MemoryProjectStore(_Faults):
    """Dict-backed IProjectStore."""

    def __init__(self) -> None:
        super().__init__()
        self._links: dict[str, list[str]] = {}

    def link(self, contract_id: str, project_id: str) -> None:
        self._links.setdefault(contract_id, []).append(project_id)

    async def list_project_ids(self, contract_id: str) -> list[str]:
        self._check("list_project_ids")
        return list(self._links.get(contract_id, []))


class MemoryActivityStore(_Faults):
    """List-backed IActivityStore."""

    def __init__(self) -> None:
        super().__init__()
        self._records: list[WorkActivity] = []

    def add(self, record: WorkActivity) -> None:
        self._records.append(record)

    async def list_activity(
        self, project_ids: list[str], start: date, end: date
    ) -> list[WorkActivity]:
        self._check("list_activity")
        wanted = set(project_ids)
        return [
            r for r in self._records
            if r.project_id in wanted and start <= r.work_date < end
        ]


class MemoryAllocationStore(_Faults):
    """Dict-backed IAllocationStore keyed by (contract id, month)."""

    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[tuple[str, date], MonthlyRevenueAllocation] = {}
        self.writes = 0

    async def get_allocation(
        self, contract_id: str, month: date
    ) -> MonthlyRevenueAllocation | None:
        self._check("get_allocation")
        row = self._rows.get((contract_id, month))
        return row.model_copy(deep=True) if row else None

    async def list_allocations(self, contract_id: str) -> list[MonthlyRevenueAllocation]:
        self._check("list_allocations")
        rows = [r for (cid, _), r in self._rows.items() if cid == contract_id]
        return [r.model_copy(deep=True) for r in sorted(rows, key=lambda r: r.allocation_month)]

    async def list_allocations_between(
        self, start: date, end: date
    ) -> list[MonthlyRevenueAllocation]:
        self._check("list_allocations_between")
        return [
            r.model_copy(deep=True) for r in self._rows.values()
            if start <= r.allocation_month <= end
        ]

    async def put_allocation(
        self, allocation: MonthlyRevenueAllocation, *, allow_adjusted: bool = False
    ) -> MonthlyRevenueAllocation:
        self._check("put_allocation")
        key = (allocation.annual_contract_id, allocation.allocation_month)
        current = self._rows.get(key)
        if current is not None and current.is_locked and not allow_adjusted:
            raise ConflictError(
                f"Allocation {allocation.allocation_month.isoformat()} of contract "
                f"{allocation.annual_contract_id!r} is adjusted"
            )
        self._rows[key] = allocation.model_copy(deep=True)
        self.writes += 1
        return allocation


class MemoryContractLock:
    """Process-local IContractLock built on asyncio.Lock."""

    def __init__(self, blocking_timeout: float = 10.0) -> None:
        self._blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, contract_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(contract_id, asyncio.Lock())
        self._waiters[contract_id] = self._waiters.get(contract_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._blocking_timeout)
            except TimeoutError as exc:
                raise ContractBusyError(
                    f"Contract {contract_id!r} is locked by another request"
                ) from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            # Drop the entry once no holder or waiter references it.
            self._waiters[contract_id] -= 1
            if not self._waiters[contract_id]:
                del self._waiters[contract_id]
                del self._locks[contract_id]
