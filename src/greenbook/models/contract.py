"""Annual contract model: a fixed-price service agreement for one site."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class RecognitionMethod(StrEnum):
    """Stored for the surrounding application; revenue is always recognized by hours."""

    HOURS_BASED = "hours_based"
    DAYS_BASED = "days_based"
    EQUAL_MONTHLY = "equal_monthly"


class AnnualContract(BaseModel):
    """Annual contract as stored in the annual_contracts table."""

    id: str
    field_id: str
    contract_name: str
    fiscal_year: int
    contract_start_date: date
    contract_end_date: date
    contract_amount: int = Field(gt=0)  # whole currency units
    budget_hours: Decimal = Field(gt=0)
    revenue_recognition_method: RecognitionMethod = RecognitionMethod.HOURS_BASED

    # --- Settlement ---
    is_settled: bool = False
    settled_at: Optional[datetime] = None
    settlement_adjustment: Optional[int] = None

    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_period(self) -> AnnualContract:
        if self.contract_start_date > self.contract_end_date:
            raise ValueError("contract_start_date must not be after contract_end_date")
        return self
