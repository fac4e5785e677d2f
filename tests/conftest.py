"""Shared fixtures: an isolated app per test backed by a throw-away SQLite file"""
import random
from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from propledger.config import Settings
from propledger.database import Database
from propledger.main import create_app
from propledger.models.user import User, UserRole
from propledger.services.ledger import SimulatedLedger

TEST_PASSWORD = "secret123"


@pytest.fixture
def test_settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")


@pytest.fixture
def app(test_settings):
    return create_app(test_settings, ledger=SimulatedLedger(random.Random(1234)))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register a user through the API and return its id, email and auth headers"""
    def _register(role: str, name: str = None, email: str = None):
        email = email or f"{role}-{uuid4().hex[:8]}@example.com"
        response = client.post("/api/auth/register", json={
            "name": name or f"Test {role.title()}",
            "email": email,
            "password": TEST_PASSWORD,
            "role": role,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return SimpleNamespace(
            id=body["user"]["id"],
            email=email,
            token=body["access_token"],
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
    return _register


@pytest.fixture
def list_property(client):
    """List a property as ``seller`` and optionally verify it as ``admin``"""
    def _list(seller, admin=None, title: str = "Lakeside Cabin", price: float = 250000):
        response = client.post("/api/properties", headers=seller.headers, json={
            "title": title,
            "description": "Two bedroom cabin with dock",
            "location": "Lake Tahoe, CA",
            "price": price,
        })
        assert response.status_code == 201, response.text
        property_id = response.json()["id"]

        if admin is not None:
            response = client.put(
                f"/api/properties/{property_id}",
                headers=admin.headers,
                json={"is_verified": True},
            )
            assert response.status_code == 200, response.text
        return property_id
    return _list


# Service-level fixtures

@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_maker() as db_session:
        yield db_session


@pytest.fixture
def make_user(session):
    """Insert a user directly, skipping password hashing"""
    async def _make(role: UserRole, name: str = None) -> User:
        user = User(
            name=name or f"{role.value.title()} User",
            email=f"{role.value}-{uuid4().hex[:8]}@example.com",
            password_hash="not-a-real-hash",
            role=role,
        )
        session.add(user)
        await session.commit()
        return user
    return _make
