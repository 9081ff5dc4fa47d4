from fastapi.testclient import TestClient

from brikx.main import app
from brikx.services import auth_service

client = TestClient(app)


def _mint_token(user_id="architect") -> str:
    r = client.post("/auth/token", json={"user_id": user_id})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def test_missing_authorization_header_401():
    r = client.get("/projects")
    assert r.status_code == 401


def test_wrong_scheme_401():
    token = _mint_token()
    r = client.get("/projects", headers={"Authorization": f"Basic {token}"})
    assert r.status_code == 401


def test_garbled_bearer_token_401():
    r = client.get("/projects", headers={"Authorization": "Bearer not-a-real-token"})
    assert r.status_code == 401


def test_token_signed_with_other_secret_401(monkeypatch):
    token = _mint_token()
    monkeypatch.setenv("JWT_SECRET", "another-secret-that-is-long-enough-000000")
    r = client.get("/projects", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_short_secret_refused(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "short")
    r = client.post("/auth/token", json={"user_id": "architect"})
    assert r.status_code == 400
    assert "32" in r.text


def test_token_endpoint_hidden_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    r = client.post("/auth/token", json={"user_id": "architect"})
    assert r.status_code == 404


def test_token_carries_user_as_subject():
    claims = auth_service.verify_token(_mint_token("architect"))
    assert claims["sub"] == "architect"
    assert "exp" in claims


def test_health_is_public():
    assert client.get("/health").json()["status"] == "ok"
