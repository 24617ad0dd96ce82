import math
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_TYPE", "local")
os.environ.setdefault("BLOG_SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from dependencies import get_cache_instance, get_storage_manager_instance
from main import app
from models import User
from services.auth import hash_password, issue_token
from storage.local import LocalStorage


class FakeCache:
    """In-memory stand-in for the redis commands the OTP flow uses, with a controllable clock."""

    def __init__(self):
        self.now = 0.0
        self.values = {}
        self.expiry = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key):
        expires_at = self.expiry.get(key)
        if expires_at is not None and expires_at <= self.now:
            self.values.pop(key, None)
            self.expiry.pop(key, None)

    def get(self, key):
        self._purge(key)
        return self.values.get(key)

    def setex(self, key, seconds, value):
        self.values[key] = str(value)
        self.expiry[key] = self.now + seconds
        return True

    def ttl(self, key):
        self._purge(key)
        if key not in self.values:
            return -2
        if key not in self.expiry:
            return -1
        return math.ceil(self.expiry[key] - self.now)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self.values:
                removed += 1
            self.values.pop(key, None)
            self.expiry.pop(key, None)
        return removed

    def incr(self, key):
        value = int(self.get(key) or 0) + 1
        self.values[key] = str(value)
        return value

    def expire(self, key, seconds):
        if self.get(key) is None:
            return False
        self.expiry[key] = self.now + seconds
        return True

    def exists(self, key):
        return 1 if self.get(key) is not None else 0


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(session_factory, cache, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_instance] = lambda: cache
    app.dependency_overrides[get_storage_manager_instance] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(role="user", password=None, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=fields.pop("name", f"User {n}"),
            username=fields.pop("username", f"user_{n}"),
            email=fields.pop("email", f"user{n}@finlook.in"),
            mobile_number=fields.pop("mobile_number", f"90000000{n:02d}"),
            password=hash_password(password) if password else None,
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def auth_header():
    def build(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return build
