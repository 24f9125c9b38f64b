import os
import tempfile

# must be set before wlstore is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="wlstore-img-")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from wlstore.api.deps import get_rate_limiter
from wlstore.data.database import Base, SessionLocal, engine
from wlstore.data.models import ProductModel, UserModel
from wlstore.main import app
from wlstore.services.activity_service import activity_feed
from wlstore.services.rate_limiter import RateLimiter
from wlstore.utils.security import create_access_token, hash_password


class FakeRedis:
    """Just enough of redis.Redis for the rate limiter."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.ttl = {}
        self.fail = fail

    def incr(self, key):
        if self.fail:
            raise RedisConnectionError("redis down")
        self.data[key] = self.data.get(key, 0) + 1
        return self.data[key]

    def expire(self, key, seconds):
        self.ttl[key] = seconds
        return True

    def ping(self):
        if self.fail:
            raise RedisConnectionError("redis down")
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(fake_redis):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    activity_feed.clear()
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(client=fake_redis, max_requests=3, window_seconds=60)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def create_user(username="alice", password="secret123", roles=None, is_active=True, email=None, name=None):
    db = SessionLocal()
    try:
        user = UserModel(
            username=username,
            email=email or f"{username}@example.com",
            password=hash_password(password),
            name=name or username.title(),
            phone="",
            roles=roles or ["user"],
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    finally:
        db.close()


def create_product(code="P001", name="Keyboard", price="100.00", stock=10, rating=4.0):
    db = SessionLocal()
    try:
        product = ProductModel(code=code, name=name, price=Decimal(price), stock=stock, rating=rating)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    finally:
        db.close()


def headers_for(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.roles)}"}


@pytest.fixture
def user(client):
    return create_user()


@pytest.fixture
def admin(client):
    return create_user(username="admin", roles=["admin"])


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def products(client):
    return [
        create_product("P001", "Keyboard", "100.00", stock=10),
        create_product("P002", "Mouse", "25.50", stock=5),
        create_product("P003", "Monitor", "300.00", stock=1),
    ]
