"""Optional per-contract locking."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, nullcontext

from greenbook.core.protocols import IContractLock


def hold(lock: IContractLock | None, contract_id: str) -> AbstractAsyncContextManager[None]:
    """Hold ``lock`` for ``contract_id``; a no-op when no lock is configured."""
    if lock is None:
        return nullcontext()
    return lock.hold(contract_id)
