"""
Test configuration and fixtures.

Engine tests run against MemoryRepository; API tests run against an
in-memory SQLite database shared through StaticPool.
"""
import os

# Settings are read at import time; keep tests off any real database
os.environ["DATABASE_URL"] = "sqlite:///./test_inventory.db"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["STRICT_LOCATIONS"] = "false"
os.environ["SEED_DEFAULT_LAYOUT"] = "true"

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db, init_db
from main import app
from populate_db import seed_database
from repositories.memory import MemoryRepository
from services.reconciliation import ReconciliationEngine
from utils.locks import KeyedLock

TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def reconciler(repo: MemoryRepository) -> ReconciliationEngine:
    return ReconciliationEngine(repo, KeyedLock())


@pytest.fixture
def add_row(repo: MemoryRepository):
    """Create a committed inventory row in the memory repository"""
    def _add(code: str, stock: int, location=None, **fields):
        values = {"name": f"Part {code}", "category": "기타"}
        values.update(fields)
        item = repo.create_item(code=code, stock=stock, location=location, **values)
        repo.commit()
        return item
    return _add


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Fresh database with all tables for each test"""
    init_db(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client bound to the test session, with default users and layout"""
    seed_database(db_session)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.item_locks = KeyedLock()
    app.state.memory_store = None
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login(client: TestClient, username: str, password: str) -> Dict[str, str]:
    response = client.post("/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    return _login(client, settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD)


@pytest.fixture
def viewer_headers(client: TestClient) -> Dict[str, str]:
    return _login(client, settings.DEFAULT_VIEWER_USERNAME, settings.DEFAULT_VIEWER_PASSWORD)
