"""
Shared pytest fixtures for intake and reporting tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app, get_store
from store import IntakeStore

ADMIN_PASSWORD = "test-secret"


@pytest.fixture(autouse=True)
def _admin_env(monkeypatch):
    """Known admin password; no upstream endpoints, no demo mode unless a test opts in."""
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("ADMIN_EXPORT_URL", raising=False)
    monkeypatch.delenv("ADMIN_DATA_URL", raising=False)
    monkeypatch.delenv("COST_REVIEW_THRESHOLD", raising=False)
    monkeypatch.delenv("DEMO_MODE", raising=False)


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return IntakeStore()


@pytest.fixture
def client(store):
    """TestClient bound to the fresh store."""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}


@pytest.fixture
def sample_intake():
    """One person, one payment, one treatment, no doctors."""
    return {
        "persons": [{"firstName": "علی", "lastName": "رضایی", "createdAt": "2024-01-01"}],
        "payments": [{"type": "نقدی", "score": 9}],
        "treatments": [{"name": "ایمپلنت", "profitability": "very-high", "cost": 5000000}],
        "doctors": [],
    }
