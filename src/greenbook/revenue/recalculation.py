"""Recalculation Orchestrator: month-by-month recomputation of a contract's schedule.

Each month depends on the previous month's cumulative totals, so months are
processed strictly in order as a fold over the month range, carrying a
``CumulativeState`` accumulator. Adjusted months are not recomputed; their
stored totals are carried forward instead.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from greenbook.core.exceptions import ConflictError, GreenbookError, OperationNotAllowedError
from greenbook.core.logging import get_logger
from greenbook.core.protocols import IContractLock
from greenbook.models.allocation import (
    CumulativeState,
    MonthlyRevenueAllocation,
)
from greenbook.models.contract import AnnualContract
from greenbook.models.reports import MonthError, RecalculationReport
from greenbook.revenue.allocations import AllocationStoreManager
from greenbook.revenue.calculator import AllocationCalculator, check_in_period
from greenbook.revenue.locking import hold
from greenbook.revenue.months import iter_months, month_start
from greenbook.revenue.usage import UsageAggregator

logger = get_logger("revenue.recalculation")


class RecalculationOrchestrator:
    """Runs usage aggregation, calculation and storage for one or many months."""

    def __init__(
        self,
        *,
        usage: UsageAggregator,
        calculator: AllocationCalculator,
        allocations: AllocationStoreManager,
        lock: IContractLock | None = None,
        timezone: str = "UTC",
    ) -> None:
        self._usage = usage
        self._calculator = calculator
        self._allocations = allocations
        self._lock = lock
        self._tz = ZoneInfo(timezone)

    def today(self) -> date:
        return datetime.now(self._tz).date()

    async def _load_unsettled(self, contract_id: str) -> AnnualContract:
        contract = await self._allocations.load_contract(contract_id)
        if contract.is_settled:
            raise OperationNotAllowedError(
                f"Contract {contract_id!r} is settled and cannot be recalculated"
            )
        return contract

    async def _compute_and_save(
        self,
        contract: AnnualContract,
        month: date,
        prior: CumulativeState,
        existing: MonthlyRevenueAllocation | None,
    ) -> MonthlyRevenueAllocation:
        actual = await self._usage.monthly_hours(contract.id, month)
        allocation = self._calculator.calculate(contract, month, actual, prior, existing=existing)
        return await self._allocations.save(allocation)

    async def calculate_month(self, contract_id: str, month: date) -> MonthlyRevenueAllocation:
        """Calculate and store a single month from the stored prior month."""
        async with hold(self._lock, contract_id):
            contract = await self._load_unsettled(contract_id)
            month = check_in_period(contract, month)
            existing = await self._allocations.get(contract_id, month)
            if existing is not None and existing.is_locked:
                raise ConflictError(
                    f"Allocation {month.isoformat()} of contract {contract_id!r} is adjusted"
                )
            prior = await self._allocations.previous_state(contract_id, month)
            return await self._compute_and_save(contract, month, prior, existing)

    async def recalculate_from(
        self, contract_id: str, from_month: date, *, today: date | None = None
    ) -> RecalculationReport:
        """Recalculate every month from ``from_month`` through min(contract end, today).

        Per-month failures are collected in the report rather than raised. The
        first failure breaks the cumulative chain, so every later month is
        reported as skipped instead of being computed from stale totals.
        Months already written stay written.

        Raises:
            ContractNotFoundError: unknown contract.
            OperationNotAllowedError: contract is settled; nothing is written.
        """
        async with hold(self._lock, contract_id):
            contract = await self._load_unsettled(contract_id)
            first = max(month_start(from_month), month_start(contract.contract_start_date))
            last = min(contract.contract_end_date, today or self.today())
            report = RecalculationReport(contract_id=contract_id, from_month=first)
            months = list(iter_months(first, last)) if last >= first else []
            if not months:
                logger.info("contract=%s nothing to recalculate from %s", contract_id, first)
                return report
            report.through_month = months[-1]

            state = await self._allocations.previous_state(contract_id, first)
            broken = False
            for month in months:
                if broken:
                    report.skipped_months.append(month)
                    continue
                try:
                    existing = await self._allocations.get(contract_id, month)
                    if existing is not None and existing.is_locked:
                        state = existing.cumulative_state
                        report.locked_months.append(month)
                        logger.debug("contract=%s month=%s adjusted, carried forward",
                                     contract_id, month)
                        continue
                    saved = await self._compute_and_save(contract, month, state, existing)
                except GreenbookError as exc:
                    logger.warning("contract=%s month=%s failed (%s): %s",
                                   contract_id, month, exc.kind, exc)
                    report.errors.append(MonthError(month=month, kind=exc.kind, message=str(exc)))
                    broken = True
                    continue
                state = saved.cumulative_state
                report.recalculated.append(saved)

            logger.info(
                "contract=%s recalculated %d month(s) %s..%s, locked=%d errors=%d skipped=%d",
                contract_id, len(report.recalculated), first, report.through_month,
                len(report.locked_months), len(report.errors), len(report.skipped_months),
            )
            return report
