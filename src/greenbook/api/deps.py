"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from greenbook.core.config import AppSettings
from greenbook.revenue.engine import RevenueEngine


def get_engine(request: Request) -> RevenueEngine:
    return request.app.state.engine


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings
