from datetime import datetime, timezone, timedelta

import jwt
import pytest

from wlstore.domain.errors import AuthError
from wlstore.utils import security
from wlstore.utils.settings import JWT_SECRET, JWT_ALGORITHM


def test_password_hash_roundtrip():
    hashed = security.hash_password("secret123")
    assert hashed != "secret123"
    assert security.verify_password("secret123", hashed)
    assert not security.verify_password("wrong", hashed)


def test_verify_password_with_garbage_hash():
    assert not security.verify_password("secret123", "not-a-bcrypt-hash")


def test_token_carries_user_and_roles():
    token = security.create_access_token(7, ["user", "admin"])
    claims = security.decode_access_token(token)
    assert claims["sub"] == "7"
    assert claims["roles"] == ["user", "admin"]


def test_expired_token():
    token = security.create_access_token(7, ["user"], expires_in=-10)
    with pytest.raises(AuthError, match="expired"):
        security.decode_access_token(token)


def test_token_signed_with_other_secret():
    token = jwt.encode(
        {"sub": "7", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        JWT_SECRET + "-other",
        algorithm=JWT_ALGORITHM,
    )
    with pytest.raises(AuthError, match="Invalid token"):
        security.decode_access_token(token)


@pytest.mark.parametrize(
    "authorization,access_token,expected",
    [
        ("Bearer abc", None, "abc"),
        ("bearer abc", None, "abc"),
        (None, "xyz", "xyz"),
        ("Bearer abc", "xyz", "xyz"),
        (None, None, None),
        ("Bearer ", None, None),
    ],
)
def test_extract_token(authorization, access_token, expected):
    assert security.extract_token(authorization, access_token) == expected
