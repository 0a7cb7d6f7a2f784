"""Protocol interfaces for the stores and services greenbook collaborates with.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from typing import Protocol, runtime_checkable

from greenbook.core.types import ContractId, ProjectId
from greenbook.models.activity import WorkActivity
from greenbook.models.allocation import MonthlyRevenueAllocation
from greenbook.models.contract import AnnualContract

# ---------------------------------------------------------------------------
# Contract Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IContractStore(Protocol):
    """Annual contracts table."""

    async def get_contract(self, contract_id: ContractId) -> AnnualContract | None: ...

    async def mark_settled(
        self, contract_id: ContractId, settled_at: datetime, adjustment: int
    ) -> AnnualContract: ...


# ---------------------------------------------------------------------------
# Project Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IProjectStore(Protocol):
    """Projects linked to annual contracts."""

    async def list_project_ids(self, contract_id: ContractId) -> list[ProjectId]: ...


# ---------------------------------------------------------------------------
# Activity Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IActivityStore(Protocol):
    """Work records; ``start`` inclusive, ``end`` exclusive."""

    async def list_activity(
        self, project_ids: list[ProjectId], start: date, end: date
    ) -> list[WorkActivity]: ...


# ---------------------------------------------------------------------------
# Allocation Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IAllocationStore(Protocol):
    """Monthly revenue allocations keyed by (contract id, month)."""

    async def get_allocation(
        self, contract_id: ContractId, month: date
    ) -> MonthlyRevenueAllocation | None: ...

    async def list_allocations(self, contract_id: ContractId) -> list[MonthlyRevenueAllocation]: ...

    async def list_allocations_between(
        self, start: date, end: date
    ) -> list[MonthlyRevenueAllocation]: ...

    async def put_allocation(
        self, allocation: MonthlyRevenueAllocation, *, allow_adjusted: bool = False
    ) -> MonthlyRevenueAllocation: ...


# ---------------------------------------------------------------------------
# Per-contract lock
# ---------------------------------------------------------------------------

@runtime_checkable
class IContractLock(Protocol):
    """Mutual exclusion for work on a single contract."""

    def hold(self, contract_id: ContractId) -> AbstractAsyncContextManager[None]: ...
