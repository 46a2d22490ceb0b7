"""Shared fixtures: an isolated database, a test client and account helpers."""

import os
import tempfile

# Settings are read at import time; point them at a scratch directory first.
os.environ["FAMILYHUB_DATA_DIR"] = tempfile.mkdtemp()
os.environ["FAMILYHUB_DB_PATH"] = os.path.join(os.environ["FAMILYHUB_DATA_DIR"], "test.db")
os.environ["FAMILYHUB_APP_URL"] = "http://testserver.local"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from familyhub.database import engine, init_db
from familyhub.main import app
from familyhub.utils.security import create_confirmation_token

init_db()

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def _isolate_db():
    with engine.begin() as conn:
        for table in reversed(SQLModel.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def register(client):
    """Create a confirmed account and return (user_id, auth headers)."""

    def _register(email: str, full_name: str | None = None, invite_code: str | None = None):
        body = {"email": email, "password": PASSWORD}
        if full_name:
            body["full_name"] = full_name
        if invite_code:
            body["invite_code"] = invite_code
        r = client.post("/api/v1/auth/signup", json=body)
        assert r.status_code == 201, r.text
        user_id = r.json()["user_id"]

        r = client.post(
            "/api/v1/auth/confirm",
            json={"token": create_confirmation_token(user_id, email.lower())},
        )
        assert r.status_code == 200, r.text

        r = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert r.status_code == 200, r.text
        return user_id, {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _register


@pytest.fixture
def admin(client, register):
    """A user who created family 'The Testers' and is its admin."""
    user_id, headers = register("admin@example.com", full_name="Ada Admin")
    r = client.post("/api/v1/onboarding/create-family", json={"name": "The Testers"}, headers=headers)
    assert r.status_code == 200, r.text
    return {"user_id": user_id, "headers": headers, "family_id": r.json()["familyId"]}


@pytest.fixture
def member(client, register, admin):
    """A second user who joined the admin's family through an invite code."""
    r = client.post("/api/v1/invites/create", json={}, headers=admin["headers"])
    assert r.status_code == 200, r.text
    user_id, headers = register("member@example.com", full_name="Max Member")
    r = client.post(
        "/api/v1/onboarding/accept-invite",
        json={"code": r.json()["code"]},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    return {"user_id": user_id, "headers": headers, "family_id": admin["family_id"]}
