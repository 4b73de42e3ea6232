import itertools
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time, so configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SEED_ADMIN", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from userhub import crud  # noqa: E402
from userhub.database import Base, get_db  # noqa: E402
from userhub.main import app  # noqa: E402
from userhub.models import User  # noqa: E402

DEFAULT_PASSWORD = "foobar"

# In-memory SQLite database shared across connections via StaticPool.
engine_test = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine_test,
)


@pytest.fixture()
def db_session():
    """Provide a fresh test database session for each test.

    The schema is dropped and recreated for every test function,
    ensuring complete isolation between tests.
    """
    Base.metadata.drop_all(bind=engine_test)
    Base.metadata.create_all(bind=engine_test)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    """TestClient whose requests share the test session via a get_db override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            # Session cleanup is handled by the db_session fixture.
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def user_factory(db_session):
    """Factory fixture that creates valid users directly in the test database.

    Names and emails are sequential (Person 1, person_1@example.com, ...).
    """
    sequence = itertools.count(1)

    def _create_user(name=None, email=None, password=DEFAULT_PASSWORD, admin=False) -> User:
        n = next(sequence)
        user = User(
            name=name or f"Person {n}",
            email=email or f"person_{n}@example.com",
            password=password,
            password_confirmation=password,
            admin=admin,
        )
        errors = crud.save_user(db_session, user)
        assert errors == [], errors
        return user

    return _create_user


@pytest.fixture()
def sign_in(client):
    """Sign a user in through the sign-in form."""

    def _sign_in(user: User, password: str = DEFAULT_PASSWORD):
        response = client.post(
            "/signin",
            data={"email": user.email, "password": password},
            follow_redirects=False,
        )
        assert response.status_code == 303
        return response

    return _sign_in
