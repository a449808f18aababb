"""Tests for the name change JSON API."""

import pytest
from fastapi.testclient import TestClient

from hstrack.db.models import Player
from hstrack.db.session import get_db
from hstrack.efficiency import NullEfficiency
from hstrack.web.main import app, get_authorizer, get_efficiency, get_hiscores_client
from factories import FakeAuthorizer, FakeHiscores, add_player, stats


@pytest.fixture
def hiscores():
    return FakeHiscores({"Bobby": stats(1300)})


@pytest.fixture
def client(session_factory, hiscores):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_authorizer] = lambda: FakeAuthorizer()
    app.dependency_overrides[get_hiscores_client] = lambda: hiscores
    app.dependency_overrides[get_efficiency] = lambda: NullEfficiency()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_submit(client, db_session):
    add_player(db_session, "bob")
    db_session.commit()

    response = client.post("/api/names", json={"old_name": "Bob", "new_name": "Bobby"})

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["old_name"] == "Bob"


def test_submit_untracked(client):
    response = client.post("/api/names", json={"old_name": "Bob", "new_name": "Bobby"})

    assert response.status_code == 404
    assert "not tracked" in response.json()["message"]


def test_submit_same_names(client, db_session):
    add_player(db_session, "bob")
    db_session.commit()

    response = client.post("/api/names", json={"old_name": "Bob", "new_name": "BOB"})

    assert response.status_code == 400


def test_submit_name_too_long(client):
    response = client.post("/api/names", json={"old_name": "Bob", "new_name": "x" * 21})

    assert response.status_code == 422


def test_details(client, bob_and_bobby):
    response = client.get(f"/api/names/{bob_and_bobby['name_change']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_new_tracked"] is True
    assert data["is_new_on_hiscores"] is True
    assert data["time_diff"] == 2 * 60 * 60 * 1000


def test_details_missing(client):
    assert client.get("/api/names/9999").status_code == 404


def test_approve(client, db_session, bob_and_bobby):
    response = client.post(
        f"/api/names/{bob_and_bobby['name_change']}/approve",
        json={"admin_password": "letmein"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["resolved_at"] is not None

    db_session.expire_all()
    assert db_session.get(Player, bob_and_bobby["bob"]).username == "bobby"
    assert db_session.get(Player, bob_and_bobby["bobby"]) is None


def test_approve_wrong_password(client, bob_and_bobby):
    response = client.post(
        f"/api/names/{bob_and_bobby['name_change']}/approve",
        json={"admin_password": "guess"},
    )

    assert response.status_code == 403
    assert response.json() == {"message": "Incorrect password."}


def test_approve_twice(client, bob_and_bobby):
    url = f"/api/names/{bob_and_bobby['name_change']}/approve"
    client.post(url, json={"admin_password": "letmein"})

    response = client.post(url, json={"admin_password": "letmein"})

    assert response.status_code == 409


def test_deny(client, bob_and_bobby):
    response = client.post(
        f"/api/names/{bob_and_bobby['name_change']}/deny",
        json={"admin_password": "letmein"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "denied"


def test_deny_missing(client):
    response = client.post("/api/names/9999/deny", json={"admin_password": "letmein"})

    assert response.status_code == 404
