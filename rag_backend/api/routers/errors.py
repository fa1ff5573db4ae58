"""
Domain exception to HTTP translation.

Dependencies: fastapi, rag_backend.core.exceptions
System role: Error mapping for routers
"""

import logging

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder

from rag_backend.core.exceptions import (
    ConcurrencyConflict,
    DatabaseError,
    DocumentNotFoundError,
    InvalidTransitionError,
    RagBackendException,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: RagBackendException) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, DocumentNotFoundError):
        return 404
    if isinstance(exc, StorageError):
        return 404 if exc.not_found else 502
    if isinstance(exc, (ConcurrencyConflict, InvalidTransitionError)):
        return 409
    if isinstance(exc, DatabaseError):
        return 500
    return 500


def to_http_exception(exc: RagBackendException) -> HTTPException:
    """
    Build the HTTPException for a domain error.

    Server-side failures are logged here; client errors are not.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(
            f"{__name__}:to_http_exception - {type(exc).__name__}: {exc.message}",
            extra={"status_code": status_code},
        )
    return HTTPException(
        status_code=status_code,
        detail={"error": exc.message, "type": type(exc).__name__, "details": jsonable_encoder(exc.details)},
    )
