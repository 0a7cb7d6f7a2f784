"""Type aliases used across greenbook."""

from __future__ import annotations

from typing import Any

JsonDict = dict[str, Any]
ContractId = str
ProjectId = str
