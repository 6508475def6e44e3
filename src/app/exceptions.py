# src/app/exceptions.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class FaceppError(Exception):
    """Face++ request failed (transport error, HTTP error or error_message)."""

    def __init__(self, message: str, error_message: str = None, status_code: int = None):
        super().__init__(message)
        self.error_message = error_message
        self.status_code = status_code


class MatchStoreError(Exception):
    """The data store could not serve a match-pipeline read or write."""


class MatchStoreUnavailable(MatchStoreError):
    """The data store cannot be reached at all; no further write can succeed."""


def register_exception_handlers(app: FastAPI):

    @app.exception_handler(MatchStoreError)
    async def match_store_exception_handler(request: Request, exc: MatchStoreError):
        logger.error(f"Data store unavailable on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=503,
            content={"detail": "Data store unavailable, please retry later"},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app
