"""Monthly revenue allocation models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AllocationStatus(StrEnum):
    PROVISIONAL = "provisional"
    CONFIRMED = "confirmed"
    ADJUSTED = "adjusted"  # set only by settlement; frozen afterwards


class CumulativeState(BaseModel):
    """Running totals carried from one month to the next."""

    model_config = {"frozen": True}

    cumulative_hours: Decimal = Decimal("0")
    cumulative_revenue: int = 0


class MonthlyRevenueAllocation(BaseModel):
    """Recognized revenue for one (contract, calendar month)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    annual_contract_id: str
    allocation_month: date  # first day of the month

    # --- Usage ---
    actual_hours: Decimal = Field(ge=0)
    cumulative_hours: Decimal = Field(ge=0)

    # --- Revenue ---
    allocation_rate: Decimal
    cumulative_rate: Decimal
    allocated_revenue: int
    cumulative_revenue: int
    adjustment_amount: int = 0

    # --- Reference ---
    remaining_budget_hours: Decimal
    projected_annual_hours: Optional[Decimal] = None

    status: AllocationStatus = AllocationStatus.PROVISIONAL
    calculated_at: datetime
    confirmed_at: Optional[datetime] = None

    @field_validator("allocation_month")
    @classmethod
    def _first_of_month(cls, value: date) -> date:
        if value.day != 1:
            raise ValueError("allocation_month must be the first day of a month")
        return value

    @property
    def is_locked(self) -> bool:
        return self.status == AllocationStatus.ADJUSTED

    @property
    def cumulative_state(self) -> CumulativeState:
        return CumulativeState(
            cumulative_hours=self.cumulative_hours,
            cumulative_revenue=self.cumulative_revenue,
        )
