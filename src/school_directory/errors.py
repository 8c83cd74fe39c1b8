"""Exceptions raised by the school directory and the FastAPI handlers that render them."""

import logging
from typing import List, Optional

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchoolDirectoryError(Exception):
    """Base class for all school directory errors."""


class ValidationError(SchoolDirectoryError):
    """One or more field rules failed. Raised before any side effect."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class ConflictError(SchoolDirectoryError):
    """A school with the same (name, city) pair already exists."""


class StorageError(SchoolDirectoryError):
    """The image could not be persisted."""


class PersistenceError(SchoolDirectoryError):
    """The database rejected or failed a write."""


class TransientConnectionError(SchoolDirectoryError):
    """A network-class database failure persisted through every retry attempt."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        self.last_error = last_error
        super().__init__(message)


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of a route."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {err}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Render pydantic validation failures raised inside route bodies as 422 responses."""
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "loc": [str(part) for part in error["loc"]],
                }
                for error in errors
            ]
        },
    )
