"""Translate domain exceptions into {"error": ...} JSON responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from credit_gateway.api.dependencies import get_request_id
from credit_gateway.domain.exceptions import (
    ActionInProgress,
    DataSourceException,
    IneligibleToBorrow,
    IneligibleToRepay,
    LedgerRejected,
    LedgerTimeout,
    LedgerUnavailable,
    SyncFailed,
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Status mapping:
    - SyncFailed, DataSourceException: 500 (any sync or acquisition failure)
    - ActionInProgress: 409
    - IneligibleToBorrow/Repay: 422 with the unmet reasons
    - LedgerRejected: 502, LedgerUnavailable: 503, LedgerTimeout: 504
    - Anything else: 500 "Internal server error"
    """

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(SyncFailed)
    async def sync_failed_handler(request: Request, exc: SyncFailed):
        log = logging.warning if exc.indeterminate else logging.error
        log(f"Sync failed: {exc.cause}", extra={"request_id": get_request_id(request)})
        return _error(500, str(exc.cause))

    @app.exception_handler(DataSourceException)
    async def data_source_handler(request: Request, exc: DataSourceException):
        logging.error(f"Trading data error: {exc}", extra={"request_id": get_request_id(request)})
        return _error(500, str(exc))

    @app.exception_handler(ActionInProgress)
    async def action_in_progress_handler(request: Request, exc: ActionInProgress):
        logging.info(f"Rejected concurrent action: {exc}", extra={"request_id": get_request_id(request)})
        return _error(409, str(exc))

    @app.exception_handler(IneligibleToBorrow)
    @app.exception_handler(IneligibleToRepay)
    async def ineligible_handler(request: Request, exc):
        return _error(422, str(exc), reasons=[r.value for r in exc.reasons])

    @app.exception_handler(LedgerRejected)
    async def ledger_rejected_handler(request: Request, exc: LedgerRejected):
        logging.error(f"Ledger rejected: {exc}", extra={"request_id": get_request_id(request)})
        return _error(502, str(exc))

    @app.exception_handler(LedgerUnavailable)
    async def ledger_unavailable_handler(request: Request, exc: LedgerUnavailable):
        logging.error(f"Ledger unavailable: {exc}", extra={"request_id": get_request_id(request)})
        return _error(503, str(exc))

    @app.exception_handler(LedgerTimeout)
    async def ledger_timeout_handler(request: Request, exc: LedgerTimeout):
        logging.warning(f"Ledger timeout: {exc}", extra={"request_id": get_request_id(request)})
        return _error(504, str(exc), indeterminate=True)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logging.error(
            f"Unexpected error: {exc}", exc_info=exc, extra={"request_id": get_request_id(request)}
        )
        return _error(500, "Internal server error")
