"""Annual contract revenue endpoints."""

from __future__ import annotations

import asyncio
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from greenbook.api.deps import get_engine, get_settings
from greenbook.core.config import AppSettings
from greenbook.models.allocation import MonthlyRevenueAllocation
from greenbook.models.reports import ContractProgress, SettlementResult
from greenbook.revenue.engine import RevenueEngine

router = APIRouter(tags=["revenue"])


class RecalculateRequest(BaseModel):
    from_month: date


class PeriodRevenue(BaseModel):
    start: date
    end: date
    revenue: int


@router.get("/contracts/{contract_id}/allocations")
async def list_allocations(
    contract_id: str, engine: RevenueEngine = Depends(get_engine)
) -> list[MonthlyRevenueAllocation]:
    return await engine.list_allocations(contract_id)


@router.post("/contracts/{contract_id}/allocations/{month}/calculate")
async def calculate_month(
    contract_id: str, month: date, engine: RevenueEngine = Depends(get_engine)
) -> MonthlyRevenueAllocation:
    return await engine.calculate_month(contract_id, month)


@router.post("/contracts/{contract_id}/allocations/{month}/confirm")
async def confirm_month(
    contract_id: str, month: date, engine: RevenueEngine = Depends(get_engine)
) -> MonthlyRevenueAllocation:
    return await engine.confirm_month(contract_id, month)


@router.post("/contracts/{contract_id}/recalculate")
async def recalculate(
    contract_id: str,
    body: RecalculateRequest,
    engine: RevenueEngine = Depends(get_engine),
    settings: AppSettings = Depends(get_settings),
) -> JSONResponse:
    """Recalculate from ``from_month``; 422 when no month succeeded and at least one failed."""
    try:
        report = await asyncio.wait_for(
            engine.recalculate_from(contract_id, body.from_month),
            timeout=settings.revenue.recalculation_timeout_seconds,
        )
    except TimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Recalculation timed out; months already written are kept",
        ) from exc
    code = status.HTTP_422_UNPROCESSABLE_ENTITY if report.failed else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=report.model_dump(mode="json"))


@router.post("/contracts/{contract_id}/settle")
async def settle(
    contract_id: str, engine: RevenueEngine = Depends(get_engine)
) -> SettlementResult:
    return await engine.settle(contract_id)


@router.get("/contracts/{contract_id}/progress")
async def progress(
    contract_id: str, engine: RevenueEngine = Depends(get_engine)
) -> ContractProgress:
    return await engine.contract_progress(contract_id)


@router.get("/revenue")
async def revenue_for_period(
    start: date, end: date, engine: RevenueEngine = Depends(get_engine)
) -> PeriodRevenue:
    return PeriodRevenue(start=start, end=end, revenue=await engine.revenue_for_period(start, end))
