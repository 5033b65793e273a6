"""
storefront/core/errors.py
Remote-store failures and their HTTP rendering.

Every failure is scoped to the request that triggered it; the caller retries by
re-issuing the same request.
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("storefront.errors")


class RemoteQueryError(Exception):
    """A Firestore call failed (network, permission, quota, missing index...)."""

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message)
        self.message = message
        self.operation = operation


async def remote_query_error_handler(request: Request, exc: RemoteQueryError) -> JSONResponse:
    logger.warning("Remote query failed (%s %s, op=%s): %s",
                   request.method, request.url.path, exc.operation, exc.message)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.message, "retryable": True},
    )
