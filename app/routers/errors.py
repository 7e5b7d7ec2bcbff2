import logging
from typing import NoReturn

from fastapi import HTTPException

from app.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)


def raise_http_error(error: Exception) -> NoReturn:
    """Translate a service error into the matching HTTP response."""
    if isinstance(error, HTTPException):
        raise error
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        raise HTTPException(status_code=403, detail=str(error))
    if isinstance(error, ConflictError):
        raise HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ValueError):
        raise HTTPException(status_code=400, detail=str(error))
    logger.exception("Unexpected error", exc_info=error)
    raise HTTPException(status_code=500, detail="Internal server error")
