# tests/conftest.py
import os, sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_ACCESS_MINUTES", "15")
os.environ.setdefault("JWT_REFRESH_DAYS", "7")

from dailynotes import create_app
from dailynotes.extensions import db

PASSWORD = "SuperSecret123"

@pytest.fixture()
def app(tmp_path):
    # une app + un schéma neufs par test (SQLite en mémoire, cf. TestConfig)
    app = create_app({
        "TESTING": True,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def register(client):
    """register(username) -> (headers, profile_id)"""
    def _register(username, full_name=None):
        r = client.post("/api/v1/auth/register", json={
            "email": f"{username}@example.com",
            "password": PASSWORD,
            "username": username,
            "full_name": full_name,
        })
        assert r.status_code == 201, r.get_json()
        headers = {"Authorization": f"Bearer {r.get_json()['access_token']}"}
        me = client.get("/api/v1/auth/me", headers=headers).get_json()
        return headers, me["id"]
    return _register

@pytest.fixture()
def befriend(client):
    """Demande a -> b puis acceptation par b."""
    def _befriend(a, b):
        a_headers, _ = a
        b_headers, b_id = b
        r = client.post("/api/v1/friends/requests", headers=a_headers, json={"friend_id": b_id})
        assert r.status_code == 201, r.get_json()
        edge_id = r.get_json()["data"]["id"]
        r = client.post(f"/api/v1/friends/requests/{edge_id}/accept", headers=b_headers)
        assert r.status_code == 200, r.get_json()
    return _befriend
