"""Translate greenbook errors into HTTP responses keyed by error kind."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse

from greenbook.core.exceptions import DataAccessError, GreenbookError, PartialFailureError
from greenbook.core.logging import get_logger

logger = get_logger("api.errors")

STATUS_BY_KIND: dict[str, int] = {
    "contract_not_found": status.HTTP_404_NOT_FOUND,
    "out_of_range": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "conflict": status.HTTP_409_CONFLICT,
    "contract_busy": status.HTTP_409_CONFLICT,
    "operation_not_allowed": status.HTTP_409_CONFLICT,
    "insufficient_data": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "consistency": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "data_access": status.HTTP_502_BAD_GATEWAY,
    "partial_failure": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def greenbook_error_handler(request: Request, exc: GreenbookError) -> JSONResponse:
    code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, code, exc.kind, exc)
    body: dict = {"kind": exc.kind, "title": exc.title}
    # Collaborator error text stays in the logs.
    if isinstance(exc, PartialFailureError):
        body.update(applied=exc.applied, failed=exc.failed)
    elif not isinstance(exc, DataAccessError):
        body["detail"] = str(exc)
    return JSONResponse(status_code=code, content=body)
