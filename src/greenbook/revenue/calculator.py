"""Allocation Calculator: one month's recognized revenue from cumulative usage.

Revenue is computed cumulatively and capped at the contract amount; the
monthly figure is the difference between this month's and the prior month's
cumulative revenue.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from greenbook.core.exceptions import ConflictError, ConsistencyError, OutOfRangeError
from greenbook.models.allocation import (
    AllocationStatus,
    CumulativeState,
    MonthlyRevenueAllocation,
)
from greenbook.models.contract import AnnualContract
from greenbook.revenue.months import month_start, months_between


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _quantize(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def check_in_period(contract: AnnualContract, month: date) -> date:
    """Normalize ``month`` to its first day and check it against the contract period."""
    month = month_start(month)
    first = month_start(contract.contract_start_date)
    if month < first or month > contract.contract_end_date:
        raise OutOfRangeError(
            contract.id, month, contract.contract_start_date, contract.contract_end_date
        )
    return month


def elapsed_months(contract: AnnualContract, month: date) -> int:
    """Calendar months from the contract's start month through ``month`` inclusive."""
    return months_between(month_start(contract.contract_start_date), month)


def cumulative_revenue_for(contract: AnnualContract, cumulative_hours: Decimal) -> int:
    """Revenue recognized through ``cumulative_hours`` of usage, capped at the contract amount."""
    raw = Decimal(contract.contract_amount) * cumulative_hours / contract.budget_hours
    return min(contract.contract_amount, round_half_up(raw))


class AllocationCalculator:
    """Builds provisional allocation records; performs no I/O."""

    def __init__(self, *, rate_places: int = 6, hours_places: int = 2) -> None:
        self._rate_places = rate_places
        self._hours_places = hours_places

    def calculate(
        self,
        contract: AnnualContract,
        month: date,
        actual_hours: Decimal,
        prior: CumulativeState,
        *,
        existing: MonthlyRevenueAllocation | None = None,
        calculated_at: datetime | None = None,
    ) -> MonthlyRevenueAllocation:
        """Compute the allocation for ``month``.

        Args:
            contract: Contract terms.
            month: Any day in the target month.
            actual_hours: Usage in the target month.
            prior: Cumulative totals of the immediately preceding allocation
                (zeros when there is none).
            existing: Stored record for the month, if any. Its id is reused so
                the result overwrites it in place.
            calculated_at: Timestamp to stamp; defaults to now (UTC).

        Raises:
            OutOfRangeError: month outside the contract period.
            ConflictError: existing record is adjusted.
            ConsistencyError: negative usage or negative monthly revenue.
        """
        month = check_in_period(contract, month)
        if existing is not None and existing.is_locked:
            raise ConflictError(
                f"Allocation {month.isoformat()} of contract {contract.id!r} is adjusted"
            )
        if actual_hours < 0:
            raise ConsistencyError(
                f"Negative usage {actual_hours} for contract {contract.id!r} "
                f"in {month.isoformat()}"
            )

        budget = contract.budget_hours
        cumulative_hours = prior.cumulative_hours + actual_hours
        cumulative_revenue = cumulative_revenue_for(contract, cumulative_hours)
        allocated_revenue = cumulative_revenue - prior.cumulative_revenue
        if allocated_revenue < 0:
            raise ConsistencyError(
                f"Negative monthly revenue {allocated_revenue} for contract {contract.id!r} "
                f"in {month.isoformat()} (prior cumulative {prior.cumulative_revenue}, "
                f"new cumulative {cumulative_revenue})"
            )

        elapsed = elapsed_months(contract, month)
        projected = (
            _quantize(cumulative_hours / elapsed * 12, self._hours_places) if elapsed else None
        )

        fields = {
            "annual_contract_id": contract.id,
            "allocation_month": month,
            "actual_hours": actual_hours,
            "cumulative_hours": cumulative_hours,
            "allocation_rate": _quantize(actual_hours / budget, self._rate_places),
            "cumulative_rate": _quantize(cumulative_hours / budget, self._rate_places),
            "allocated_revenue": allocated_revenue,
            "cumulative_revenue": cumulative_revenue,
            "adjustment_amount": 0,
            "remaining_budget_hours": budget - cumulative_hours,
            "projected_annual_hours": projected,
            "status": AllocationStatus.PROVISIONAL,
            "calculated_at": calculated_at or datetime.now(timezone.utc),
        }
        if existing is not None:
            fields["id"] = existing.id
        return MonthlyRevenueAllocation(**fields)
