"""
Translation of the exception hierarchy into HTTP responses.
"""

from datetime import datetime
from typing import Dict, Type
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import (
    FinsightException,
    ValidationError,
    RateLimitExceeded,
    CollaboratorUnavailable,
    DocumentExtractionError
)

logger = get_logger(__name__)

STATUS_CODES: Dict[Type[FinsightException], int] = {
    ValidationError: 400,
    DocumentExtractionError: 400,
    RateLimitExceeded: 429,
    CollaboratorUnavailable: 502,
}


def status_code_for(error: Exception) -> int:
    """HTTP status for an exception, 500 when it has no mapping."""
    for exception_type, status_code in STATUS_CODES.items():
        if isinstance(error, exception_type):
            return status_code
    return 500


def error_response(error: FinsightException) -> JSONResponse:
    status_code = status_code_for(error)
    headers = {}
    if isinstance(error, RateLimitExceeded) and error.retry_after is not None:
        headers["Retry-After"] = str(error.retry_after)

    if status_code >= 500:
        logger.error(f"❌ Request failed: {str(error)}")
    else:
        logger.info(f"🚫 Request rejected ({status_code}): {str(error)}")

    return JSONResponse(
        status_code=status_code,
        content={"error": str(error), "timestamp": str(datetime.now())},
        headers=headers
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handler mapping typed errors to status codes."""

    @app.exception_handler(FinsightException)
    async def finsight_exception_handler(request: Request, exc: FinsightException):
        return error_response(exc)
