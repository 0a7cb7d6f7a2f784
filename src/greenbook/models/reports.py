"""Result models returned by recalculation, settlement and progress queries."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from greenbook.models.allocation import MonthlyRevenueAllocation
from greenbook.models.contract import AnnualContract


class MonthError(BaseModel):
    """A month that failed during recalculation."""

    month: date
    kind: str
    message: str


class RecalculationReport(BaseModel):
    """Outcome of recalculating a range of months for one contract."""

    contract_id: str
    from_month: date
    through_month: Optional[date] = None  # None when the range is empty
    recalculated: list[MonthlyRevenueAllocation] = Field(default_factory=list)
    locked_months: list[date] = Field(default_factory=list)  # adjusted, carried forward
    errors: list[MonthError] = Field(default_factory=list)
    skipped_months: list[date] = Field(default_factory=list)  # after an upstream failure

    @computed_field
    @property
    def failed(self) -> bool:
        return not self.recalculated and bool(self.errors)


class SettlementResult(BaseModel):
    """Outcome of settling an annual contract."""

    contract: AnnualContract
    allocation: MonthlyRevenueAllocation
    total_recognized_revenue: int  # before adjustment
    adjustment: int
    earlier_adjusted_months: list[date] = Field(default_factory=list)


class ContractProgress(BaseModel):
    """Progress of a contract against its budget."""

    contract: AnnualContract
    allocations: list[MonthlyRevenueAllocation]
    total_actual_hours: Decimal
    total_allocated_revenue: int
    progress_rate: Decimal
    remaining_budget_hours: Decimal
