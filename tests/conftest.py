import os

# Keep the app's own engine off the real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_current_user
from app.core.events import event_bus
from app.core.security import get_password_hash
from app.database import Base
from app.main import app
from app.models.user import User


# 1. SETUP TEST DATABASE
# We use SQLite in-memory with StaticPool so the data persists
# for the duration of a single test function but isolates threads.
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 2. DB SESSION FIXTURE
@pytest.fixture(scope="function")
def db():
    """
    Creates a fresh database for every single test case.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_event_bus():
    yield
    event_bus.clear()


# 3. CLIENT FIXTURE (Unauthenticated)
@pytest.fixture(scope="function")
def client(db) -> Generator:
    """
    Returns a TestClient with the database dependency overridden.
    """

    def override_get_db():
        try:
            yield db
        finally:
            # The 'db' fixture handles the teardown at the end of the test function.
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    # Reset overrides after test
    app.dependency_overrides.clear()


# 4. USER FIXTURES
@pytest.fixture(scope="function")
def normal_user(db):
    user = User(
        username="testuser",
        email="test@example.com",
        hashed_password=get_password_hash("test1234"),
        timezone="UTC",
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_user(db):
    user = User(
        username="friend",
        email="friend@example.com",
        hashed_password="fakehash",
        timezone="UTC",
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# 5. AUTHENTICATED CLIENT FIXTURE
@pytest.fixture(scope="function")
def auth_client(client, normal_user):
    """
    Returns a client that is already "logged in" as a normal user.
    We do this by overriding the get_current_user dependency directly.
    """
    app.dependency_overrides[get_current_user] = lambda: normal_user
    return client
