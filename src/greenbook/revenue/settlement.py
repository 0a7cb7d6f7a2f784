"""Settlement Engine: closes out an annual contract at period end."""

from __future__ import annotations

from datetime import datetime, timezone

from greenbook.core.exceptions import (
    GreenbookError,
    InsufficientDataError,
    OperationNotAllowedError,
    PartialFailureError,
)
from greenbook.core.logging import get_logger
from greenbook.core.protocols import IContractLock, IContractStore
from greenbook.models.allocation import AllocationStatus
from greenbook.models.reports import SettlementResult
from greenbook.revenue.allocations import AllocationStoreManager
from greenbook.revenue.locking import hold

logger = get_logger("revenue.settlement")


class SettlementEngine:
    """Forces total recognized revenue to equal the contract amount and locks the contract.

    The whole difference is booked on the chronologically last allocation,
    which becomes ``adjusted``. The allocation is written first, then the
    contract; a failure of the second write raises ``PartialFailureError``
    and is not compensated. Settling again books the same adjustment.
    """

    def __init__(
        self,
        *,
        contracts: IContractStore,
        allocations: AllocationStoreManager,
        lock: IContractLock | None = None,
    ) -> None:
        self._contracts = contracts
        self._allocations = allocations
        self._lock = lock

    async def settle(
        self, contract_id: str, *, settled_at: datetime | None = None
    ) -> SettlementResult:
        async with hold(self._lock, contract_id):
            contract = await self._allocations.load_contract(contract_id)
            if contract.is_settled:
                raise OperationNotAllowedError(f"Contract {contract_id!r} is already settled")

            allocations = await self._allocations.list_for_contract(contract_id)
            if not allocations:
                raise InsufficientDataError(f"Contract {contract_id!r} has no monthly allocations")

            last = allocations[-1]
            # A retry after a partial failure finds the last month already adjusted.
            prior_adjustment = last.adjustment_amount if last.is_locked else 0
            total = sum(a.allocated_revenue for a in allocations) - prior_adjustment
            adjustment = contract.contract_amount - total

            earlier_adjusted = [a.allocation_month for a in allocations[:-1] if a.is_locked]
            if earlier_adjusted:
                # Ambiguous edit history: the adjustment still goes wholly to the last month.
                logger.warning("contract=%s has adjusted months before the last one: %s",
                               contract_id, ", ".join(m.isoformat() for m in earlier_adjusted))

            final = last.model_copy(update={
                "allocated_revenue": last.allocated_revenue - prior_adjustment + adjustment,
                "adjustment_amount": adjustment,
                "cumulative_revenue": contract.contract_amount,
                "status": AllocationStatus.ADJUSTED,
            })
            final = await self._allocations.apply_settlement(final)

            stamp = settled_at or datetime.now(timezone.utc)
            try:
                settled = await self._contracts.mark_settled(contract_id, stamp, adjustment)
            except GreenbookError as exc:
                logger.error("contract=%s allocation %s adjusted but contract update failed: %s",
                             contract_id, final.allocation_month, exc)
                raise PartialFailureError(
                    contract_id, applied=["allocation"], failed="contract", message=str(exc)
                ) from exc

            logger.info("contract=%s settled: recognized=%d adjustment=%+d on %s",
                        contract_id, total, adjustment, final.allocation_month)
            return SettlementResult(
                contract=settled,
                allocation=final,
                total_recognized_revenue=total,
                adjustment=adjustment,
                earlier_adjusted_months=earlier_adjusted,
            )
