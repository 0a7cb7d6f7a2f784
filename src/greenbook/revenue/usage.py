"""Usage Aggregator: monthly consumption of a contract from work activity."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from greenbook.core.logging import get_logger
from greenbook.core.protocols import IActivityStore, IProjectStore
from greenbook.models.activity import WorkActivity
from greenbook.revenue.months import month_start, next_month

logger = get_logger("revenue.usage")


class UsageAggregator:
    """Sums work activity of the projects linked to a contract, one month at a time.

    Store failures surface as ``DataAccessError`` from the backends; nothing
    here falls back to zero on error.
    """

    def __init__(self, *, projects: IProjectStore, activity: IActivityStore) -> None:
        self._projects = projects
        self._activity = activity

    async def _month_activity(self, contract_id: str, month: date) -> list[WorkActivity]:
        project_ids = await self._projects.list_project_ids(contract_id)
        if not project_ids:
            return []
        start = month_start(month)
        return await self._activity.list_activity(project_ids, start, next_month(start))

    async def monthly_hours(self, contract_id: str, month: date) -> Decimal:
        """Total hours worked for the contract in ``month``."""
        records = await self._month_activity(contract_id, month)
        total = sum((r.hours for r in records), Decimal("0"))
        logger.debug("contract=%s month=%s hours=%s records=%d",
                     contract_id, month_start(month), total, len(records))
        return total
