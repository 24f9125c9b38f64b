# wlstore/services/auth_service.py
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.orm import Session

from wlstore.data.models.user import UserModel
from wlstore.domain.errors import AuthError, ConflictError, NotFoundError
from wlstore.domain.schemas import SignupIn, SigninIn
from wlstore.repos.user_repo import UserRepo
from wlstore.services.activity_service import activity_feed
from wlstore.utils.security import hash_password, verify_password, create_access_token, decode_access_token
from wlstore.utils.settings import JWT_EXPIRATION_SECONDS, MIN_PASSWORD_LENGTH
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


class AuthService:
    """
    Signup/signin and bearer token resolution.
    Tokens carry the user id; roles and the active flag are always re-read
    from the store so a deactivated account is locked out immediately.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def signup(self, payload: SignupIn) -> Dict[str, Any]:
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        username = payload.username.strip()
        email = payload.email.strip().lower()

        if self.repo.get_by_username(username):
            raise ConflictError(f"Registration failed: username '{username}' is already taken")
        if self.repo.get_by_email(email):
            raise ConflictError(f"Registration failed: email '{email}' is already taken")

        #roles are never taken from the request
        user = self.repo.create_user(
            UserModel(
                username=username,
                email=email,
                password=hash_password(payload.password),
                name=payload.name.strip(),
                phone=(payload.phone or "").strip(),
                roles=["user"],
                is_active=True,
            )
        )

        logger.info(f"User {user.id} ({user.username}) registered")
        activity_feed.record(
            "user",
            f'New user "{user.username}" registered ({user.email})',
            userId=user.id,
            username=user.username,
            email=user.email,
            source="user_management",
        )

        return {
            "message": "User registered successfully!",
            "user": user,
            "access_token": create_access_token(user.id, user.roles),
            "expires_in": JWT_EXPIRATION_SECONDS,
        }

    def signin(self, payload: SigninIn) -> Dict[str, Any]:
        if not payload.username and not payload.email:
            raise ValueError("Password and either username or email are required")

        if payload.username:
            user = self.repo.get_by_username(payload.username.strip())
        else:
            user = self.repo.get_by_email(payload.email)

        if not user:
            raise NotFoundError("User not found")

        if not user.is_active:
            logger.warning(f"Sign-in attempt for deactivated user {user.id}")
            raise AuthError("Account is deactivated")

        if not verify_password(payload.password, user.password):
            logger.warning(f"Invalid password for user {user.id}")
            raise AuthError("Invalid password")

        user.last_login = datetime.now(timezone.utc)
        user = self.repo.save(user)
        logger.info(f"User {user.id} signed in")

        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "name": user.name,
            "phone": user.phone,
            "roles": user.roles,
            "access_token": create_access_token(user.id, user.roles),
            "expires_in": JWT_EXPIRATION_SECONDS,
        }

    def resolve_token(self, token: str) -> UserModel:
        claims = decode_access_token(token)

        sub = claims.get("sub")
        if not sub or not str(sub).isdigit():
            raise AuthError("Invalid token format")

        user = self.repo.get_user(int(sub))
        if not user:
            raise AuthError("User not found")

        if not user.is_active:
            raise PermissionError("Account is deactivated")

        return user
