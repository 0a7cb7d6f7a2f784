"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from greenbook.api.deps import get_engine
from greenbook.revenue.engine import RevenueEngine

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(engine: RevenueEngine = Depends(get_engine)) -> dict:
    return await engine.health_check()
