# wlstore/api/errors.py
from typing import NoReturn

from fastapi import HTTPException

from wlstore.domain.errors import (
    AuthError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PayloadTooLargeError,
)


def raise_http(e: Exception) -> NoReturn:
    """Map a service error to the matching HTTPException."""
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, AuthError):
        raise HTTPException(status_code=401, detail=str(e), headers={"WWW-Authenticate": "Bearer"})
    if isinstance(e, PayloadTooLargeError):
        raise HTTPException(status_code=413, detail=str(e))
    if isinstance(e, PermissionError):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (InvalidTransitionError, ValueError)):
        raise HTTPException(status_code=400, detail=str(e))
    raise e
