"""Greenbook exception hierarchy.

Every error exposes a stable ``kind`` and a short ``title`` so a presentation
layer can translate it without parsing messages.
"""

from __future__ import annotations

from datetime import date


class GreenbookError(Exception):
    """Base exception for all greenbook errors."""

    kind = "internal"
    title = "Unexpected error"


class DataAccessError(GreenbookError):
    """A collaborator store was unreachable, a query failed, or a row was malformed."""

    kind = "data_access"
    title = "Data could not be loaded or saved"


class ContractNotFoundError(GreenbookError):
    """No annual contract exists for the given id."""

    kind = "contract_not_found"
    title = "Annual contract not found"

    def __init__(self, contract_id: str) -> None:
        self.contract_id = contract_id
        super().__init__(f"Annual contract {contract_id!r} not found")


class OutOfRangeError(GreenbookError):
    """Target month lies outside the contract period."""

    kind = "out_of_range"
    title = "Month is outside the contract period"

    def __init__(self, contract_id: str, month: date, start: date, end: date) -> None:
        self.contract_id = contract_id
        self.month = month
        super().__init__(
            f"Month {month.isoformat()} is outside contract {contract_id!r} "
            f"period {start.isoformat()}..{end.isoformat()}"
        )


class ConflictError(GreenbookError):
    """Target month is locked (adjusted) and cannot be rewritten."""

    kind = "conflict"
    title = "Allocation is locked"


class ContractBusyError(ConflictError):
    """Per-contract lock could not be acquired in time."""

    kind = "contract_busy"
    title = "Contract is being processed by another request"


class ConsistencyError(GreenbookError):
    """A computed value violates an allocation invariant."""

    kind = "consistency"
    title = "Allocation data is inconsistent"


class OperationNotAllowedError(GreenbookError):
    """Operation targets a settled contract."""

    kind = "operation_not_allowed"
    title = "Contract is already settled"


class InsufficientDataError(GreenbookError):
    """Not enough allocation data to perform the operation."""

    kind = "insufficient_data"
    title = "No monthly allocations available"


class PartialFailureError(GreenbookError):
    """A multi-step write was only partly applied and needs manual reconciliation."""

    kind = "partial_failure"
    title = "Settlement was only partly applied"

    def __init__(self, contract_id: str, applied: list[str], failed: str, message: str) -> None:
        self.contract_id = contract_id
        self.applied = applied
        self.failed = failed
        super().__init__(
            f"Settlement of {contract_id!r} partly applied ({', '.join(applied)}); "
            f"{failed} write failed: {message}"
        )
