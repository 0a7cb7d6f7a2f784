"""Shared test doubles: re-export memory backends plus record builders."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from greenbook.models.activity import WorkActivity
from greenbook.models.allocation import AllocationStatus, MonthlyRevenueAllocation
from greenbook.models.contract import AnnualContract
from greenbook.persistence.memory_backend import (
    MemoryActivityStore,
    MemoryAllocationStore,
    MemoryContractLock,
    MemoryContractStore,
    MemoryProjectStore,
)

CONTRACT_ID = "contract-2026-park"
PROJECT_ID = "project-mowing"
FIXED_NOW = datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)

__all__ = [
    "CONTRACT_ID",
    "FIXED_NOW",
    "PROJECT_ID",
    "MemoryActivityStore",
    "MemoryAllocationStore",
    "MemoryContractLock",
    "MemoryContractStore",
    "MemoryProjectStore",
    "make_allocation",
    "make_contract",
    "work_record",
]


def make_contract(**overrides: Any) -> AnnualContract:
    """FY2026 contract: 1,200,000 over 1,000 budget hours, Jan..Dec."""
    data: dict[str, Any] = {
        "id": CONTRACT_ID,
        "field_id": "field-kinjo-park",
        "contract_name": "FY2026 Kinjo Park grounds maintenance",
        "fiscal_year": 2026,
        "contract_start_date": date(2026, 1, 1),
        "contract_end_date": date(2026, 12, 31),
        "contract_amount": 1_200_000,
        "budget_hours": Decimal("1000"),
    }
    data.update(overrides)
    return AnnualContract(**data)


def make_allocation(
    month: date,
    allocated: int,
    cumulative: int,
    *,
    hours: str = "0",
    cumulative_hours: str = "0",
    status: AllocationStatus = AllocationStatus.PROVISIONAL,
    contract_id: str = CONTRACT_ID,
) -> MonthlyRevenueAllocation:
    return MonthlyRevenueAllocation(
        annual_contract_id=contract_id,
        allocation_month=month,
        actual_hours=Decimal(hours),
        cumulative_hours=Decimal(cumulative_hours),
        allocation_rate=Decimal("0"),
        cumulative_rate=Decimal("0"),
        allocated_revenue=allocated,
        cumulative_revenue=cumulative,
        remaining_budget_hours=Decimal("0"),
        status=status,
        calculated_at=FIXED_NOW,
    )


def work_record(
    work_date: date,
    total_hours: str | None = None,
    site_hours: str | None = None,
    *,
    project_id: str = PROJECT_ID,
    employee_id: str = "emp-001",
) -> WorkActivity:
    return WorkActivity(
        employee_id=employee_id,
        project_id=project_id,
        work_date=work_date,
        total_hours=Decimal(total_hours) if total_hours is not None else None,
        site_hours=Decimal(site_hours) if site_hours is not None else None,
    )
