"""Unit test fixtures: memory-backed stores and a wired revenue engine."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from greenbook.core.config import AppSettings
from greenbook.revenue.engine import RevenueEngine
from tests.fakes import (
    CONTRACT_ID,
    PROJECT_ID,
    MemoryActivityStore,
    MemoryAllocationStore,
    MemoryContractLock,
    MemoryContractStore,
    MemoryProjectStore,
    make_contract,
)


@pytest.fixture
def stores():
    """Memory stores with the default contract linked to one project."""
    ns = SimpleNamespace(
        contracts=MemoryContractStore(),
        projects=MemoryProjectStore(),
        activity=MemoryActivityStore(),
        allocations=MemoryAllocationStore(),
    )
    ns.contracts.add_contract(make_contract())
    ns.projects.link(CONTRACT_ID, PROJECT_ID)
    return ns


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def engine(stores, settings):
    return RevenueEngine(
        settings=settings,
        contracts=stores.contracts,
        projects=stores.projects,
        activity=stores.activity,
        allocations=stores.allocations,
        lock=MemoryContractLock(blocking_timeout=1.0),
    )
