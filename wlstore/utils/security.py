# wlstore/utils/security.py
from datetime import datetime, timezone, timedelta

import bcrypt
import jwt

from wlstore.domain.errors import AuthError
from wlstore.utils.settings import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRATION_SECONDS, BCRYPT_ROUNDS


def hash_password(plain: str) -> str:
    hashed = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        #malformed stored hash
        return False


def create_access_token(user_id: int, roles: list[str], expires_in: int = JWT_EXPIRATION_SECONDS) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "roles": list(roles),
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")


def extract_token(authorization: str | None, access_token: str | None) -> str | None:
    """Bearer token from the Authorization header, or the raw x-access-token header."""
    token = access_token or authorization
    if not token:
        return None
    parts = token.strip().split(None, 1)
    if parts and parts[0].lower() == "bearer":
        return parts[1].strip() if len(parts) > 1 else None
    return token.strip() or None
