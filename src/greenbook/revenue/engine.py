"""Revenue engine facade with common dependency wiring."""

from __future__ import annotations

from datetime import date, datetime

from greenbook.core.config import AppSettings
from greenbook.core.protocols import (
    IActivityStore,
    IAllocationStore,
    IContractLock,
    IContractStore,
    IProjectStore,
)
from greenbook.core.types import JsonDict
from greenbook.models.allocation import MonthlyRevenueAllocation
from greenbook.models.reports import ContractProgress, RecalculationReport, SettlementResult
from greenbook.revenue.allocations import AllocationStoreManager
from greenbook.revenue.calculator import AllocationCalculator
from greenbook.revenue.locking import hold
from greenbook.revenue.progress import ProgressReporter
from greenbook.revenue.recalculation import RecalculationOrchestrator
from greenbook.revenue.settlement import SettlementEngine
from greenbook.revenue.usage import UsageAggregator


class RevenueEngine:
    """Entry point used by the surrounding application.

    Stores, the optional per-contract lock, and settings are injected at
    construction time; the five components are wired from them.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        contracts: IContractStore,
        projects: IProjectStore,
        activity: IActivityStore,
        allocations: IAllocationStore,
        lock: IContractLock | None = None,
    ) -> None:
        self._settings = settings
        self._lock = lock
        self.usage = UsageAggregator(projects=projects, activity=activity)
        self.calculator = AllocationCalculator(
            rate_places=settings.revenue.rate_places,
            hours_places=settings.revenue.hours_places,
        )
        self.allocations = AllocationStoreManager(contracts=contracts, allocations=allocations)
        self.orchestrator = RecalculationOrchestrator(
            usage=self.usage,
            calculator=self.calculator,
            allocations=self.allocations,
            lock=lock,
            timezone=settings.revenue.timezone,
        )
        self.settlement = SettlementEngine(
            contracts=contracts, allocations=self.allocations, lock=lock
        )
        self.progress = ProgressReporter(allocations=self.allocations)

    async def list_allocations(self, contract_id: str) -> list[MonthlyRevenueAllocation]:
        await self.allocations.load_contract(contract_id)
        return await self.allocations.list_for_contract(contract_id)

    async def calculate_month(self, contract_id: str, month: date) -> MonthlyRevenueAllocation:
        return await self.orchestrator.calculate_month(contract_id, month)

    async def recalculate_from(
        self, contract_id: str, from_month: date, *, today: date | None = None
    ) -> RecalculationReport:
        return await self.orchestrator.recalculate_from(contract_id, from_month, today=today)

    async def confirm_month(self, contract_id: str, month: date) -> MonthlyRevenueAllocation:
        async with hold(self._lock, contract_id):
            return await self.allocations.confirm(contract_id, month)

    async def settle(
        self, contract_id: str, *, settled_at: datetime | None = None
    ) -> SettlementResult:
        return await self.settlement.settle(contract_id, settled_at=settled_at)

    async def contract_progress(self, contract_id: str) -> ContractProgress:
        return await self.progress.contract_progress(contract_id)

    async def revenue_for_period(self, start: date, end: date) -> int:
        return await self.progress.revenue_for_period(start, end)

    async def health_check(self) -> JsonDict:
        """Return engine health status."""
        return {
            "engine": self.__class__.__name__,
            "status": "healthy",
            "environment": self._settings.environment,
            "store_backend": self._settings.store_backend,
        }
