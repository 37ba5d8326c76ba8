"""Translate ledger errors into HTTP responses."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.modules.ledger import LedgerError, LedgerErrorKind

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred."

STATUS_BY_KIND: dict[LedgerErrorKind, int] = {
    LedgerErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LedgerErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    LedgerErrorKind.INSUFFICIENT_BALANCE: status.HTTP_400_BAD_REQUEST,
    LedgerErrorKind.CONFLICT: status.HTTP_503_SERVICE_UNAVAILABLE,
    LedgerErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind)
    if status_code is None:
        logger.error("Ledger failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": INTERNAL_ERROR_MESSAGE})

    headers = {"Retry-After": "1"} if exc.retriable else None
    return JSONResponse(status_code=status_code, content={"detail": exc.message}, headers=headers)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": INTERNAL_ERROR_MESSAGE})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
