"""
Application-wide exception handlers (consistent JSON error format).
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message},
            "generated_at": _now_iso(),
        },
    )


def add_error_handlers(app: FastAPI):
    @app.exception_handler(PyMongoError)
    async def record_store_error_handler(request: Request, exc: PyMongoError):
        logger.error("Record store failure on %s: %s", request.url.path, exc)
        return _error(503, "RECORD_STORE_UNAVAILABLE", "Record store is unavailable")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, "INTERNAL_ERROR", str(exc))
