"""Read-side summaries: contract progress and recognized revenue per period."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from greenbook.models.reports import ContractProgress
from greenbook.revenue.allocations import AllocationStoreManager


class ProgressReporter:
    def __init__(self, *, allocations: AllocationStoreManager) -> None:
        self._allocations = allocations

    async def contract_progress(self, contract_id: str) -> ContractProgress:
        contract = await self._allocations.load_contract(contract_id)
        rows = await self._allocations.list_for_contract(contract_id)
        total_hours = sum((a.actual_hours for a in rows), Decimal("0"))
        budget = contract.budget_hours
        return ContractProgress(
            contract=contract,
            allocations=rows,
            total_actual_hours=total_hours,
            total_allocated_revenue=sum(a.allocated_revenue for a in rows),
            progress_rate=total_hours / budget if budget > 0 else Decimal("0"),
            remaining_budget_hours=budget - total_hours,
        )

    async def revenue_for_period(self, start: date, end: date) -> int:
        """Recognized revenue of all contracts for allocation months in [start, end].

        Settlement folds its adjustment into ``allocated_revenue``, so
        ``adjustment_amount`` is not added again here.
        """
        rows = await self._allocations.list_between(start, end)
        return sum(a.allocated_revenue for a in rows)
