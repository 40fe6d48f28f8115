"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. Tables are
created once per session; every test works with its own freshly created
user, so data never bleeds between tests.
"""
import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mindtrack.db.base import Base, get_db
from mindtrack.main import app
from mindtrack.models.user import User

SQLITE_URL = "sqlite:///./test_mindtrack.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_user_seq = itertools.count(1)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def session_factory():
    """Opens extra sessions, e.g. one per thread in concurrency tests."""
    return TestingSessionLocal


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """
    Insert a user directly (skips bcrypt so tests stay fast).
    Returns the new user's id.
    """
    def _make() -> int:
        n = next(_user_seq)
        user = User(email=f"user{n}@test.local", password_hash="not-a-real-hash")
        db.add(user)
        db.commit()
        return user.id
    return _make


@pytest.fixture()
def user_id(make_user) -> int:
    return make_user()
