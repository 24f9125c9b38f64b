# wlstore/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.data.models.user import UserModel
from wlstore.services.auth_service import AuthService
from wlstore.services.rate_limiter import RateLimiter
from wlstore.utils.security import extract_token
from wlstore.utils.settings import RATE_LIMIT_ENABLED
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


def get_current_user(
    authorization: str | None = Header(None),
    x_access_token: str | None = Header(None),
    db: Session = Depends(get_db),
) -> UserModel:
    token = extract_token(authorization, x_access_token)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return AuthService(db).resolve_token(token)
    except (ValueError, PermissionError) as e:
        logger.warning(f"Token rejected: {e}")
        raise_http(e)


def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if not user.is_admin:
        logger.warning(f"User {user.id} denied admin access")
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()


def rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    if not RATE_LIMIT_ENABLED:
        return
    ip = request.client.host if request.client else "unknown"
    if not limiter.allow(ip):
        raise HTTPException(status_code=429, detail=limiter.message)
