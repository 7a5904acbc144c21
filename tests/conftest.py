import os

os.environ["USE_MOCK_DB"] = "true"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "admin@klingo.app"
os.environ["DEBUG"] = "true"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import firebase
from app.config.mock_firestore import MockFirestore
from app.services import cleanup_request_service, stats_service, user_service


@pytest.fixture(autouse=True)
def db():
    """Fresh in-memory store and service singletons for every test."""
    mock_db = MockFirestore()
    firebase.db = mock_db
    cleanup_request_service._cleanup_request_service = None
    stats_service._stats_service = None
    user_service._user_service = None
    yield mock_db
    firebase.reset_db()


@pytest.fixture
def client():
    from app.main import app
    return TestClient(app)


@pytest.fixture
def service():
    return cleanup_request_service.get_cleanup_request_service()


@pytest.fixture
def users():
    return user_service.get_user_service()


def make_payload(**overrides):
    payload = {
        "problemType": "litter",
        "location": "Main St & 3rd Ave",
        "severity": "medium",
        "description": "Overflowing bins next to the bus stop.",
        "contactInfo": {"name": "Ama Mensah", "phone": "+233 24 123 4567", "email": "ama@example.com"},
        "photos": ["file:///photos/bins.jpg"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload():
    return make_payload


def set_created_at(db, request_id, when):
    db.collection("cleanup_requests").document(request_id).update({"created_at": when})


@pytest.fixture
def backdate(db):
    def _backdate(request_id, when):
        set_created_at(db, request_id, when)
    return _backdate


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    response = client.post("/api/auth/register", json={
        "fullName": "Admin", "email": "admin@klingo.app", "password": "admin-password",
    })
    return response.json()["data"]["token"]


@pytest.fixture
def user_token(client):
    response = client.post("/api/auth/register", json={
        "fullName": "Kwame Boateng", "email": "kwame@example.com", "password": "kwame-password",
    })
    return response.json()["data"]["token"]


UTC = timezone.utc


def utc(*args):
    return datetime(*args, tzinfo=UTC)
