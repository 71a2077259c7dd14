from collections import defaultdict
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.tourcms import auth, create_app
from app.tourcms.db import db_session, session_scope
from app.tourcms.models import AuditEvent, Base, User
from app.tourcms.modules.homepage.models import HeroButton, HeroStat


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("UPLOAD_ROOT", str(tmp_path / "public"))
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(User(email="admin@example.com", name="Admin", password_hash=generate_password_hash("pw"), is_active=True))
        s.add(User(email="old@example.com", password_hash=generate_password_hash("pw"), is_active=False))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_login_and_session(client):
    r = client.get("/api/auth/session")
    assert r.status_code == 401

    r = client.post("/api/auth/login", json={"email": "Admin@Example.com ", "password": "pw"})
    assert r.status_code == 200
    assert r.json["success"] is True
    assert r.json["user"]["email"] == "admin@example.com"

    r = client.get("/api/auth/session")
    assert r.status_code == 200
    assert r.json["user"]["name"] == "Admin"

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert client.get("/api/auth/session").status_code == 401


def test_login_rejects_bad_password_and_inactive_user(client, app):
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json["code"] == "INVALID_CREDENTIALS"

    r = client.post("/api/auth/login", json={"email": "old@example.com", "password": "pw"})
    assert r.status_code == 401

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id).all()]
    assert actions == ["auth.login_failed", "auth.login_failed"]


def test_login_rate_limited(client, monkeypatch):
    monkeypatch.setattr(auth, "_login_attempts", defaultdict(list))
    for _ in range(5):
        r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "nope"})
        assert r.status_code == 401

    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 429
    assert r.json["code"] == "RATE_LIMITED"


def test_login_form_post(client):
    r = client.post("/api/auth/login", data={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 200
    assert client.get("/api/auth/session").status_code == 200


def test_unknown_route_is_json_404(client):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.json["code"] == "NOT_FOUND"
    assert r.json["error"] == "Not Found"


def test_invalid_json_body(client):
    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    r = client.post("/api/products", data="{not json", content_type="application/json")
    assert r.status_code == 400
    assert r.json["code"] == "INVALID_JSON"


def test_json_array_body_rejected(client):
    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    r = client.post("/api/gallery", json=[1, 2, 3])
    assert r.status_code == 400
    assert r.json["code"] == "INVALID_JSON"


def test_admin_routes_require_session(client):
    for method, url in (
        ("post", "/api/products"),
        ("put", "/api/products/1"),
        ("delete", "/api/products/1"),
        ("get", "/api/analytics"),
        ("get", "/api/admin/product-types"),
        ("post", "/api/blog"),
        ("put", "/api/settings"),
        ("post", "/api/upload"),
        ("get", "/api/media"),
        ("get", "/api/visitor/stats"),
    ):
        r = getattr(client, method)(url, json={})
        assert r.status_code == 401, url
        assert r.json["code"] == "UNAUTHORIZED"


def test_admin_routes_forbid_non_admin_role(client, app):
    with session_scope(app) as s:
        s.add(User(email="editor@example.com", password_hash=generate_password_hash("pw"), role="editor", is_active=True))
    r = client.post("/api/auth/login", json={"email": "editor@example.com", "password": "pw"})
    assert r.status_code == 200

    r = client.post("/api/blog", json={"title": "Catatan"})
    assert r.status_code == 403
    assert r.json["code"] == "FORBIDDEN"
    assert client.get("/api/visitor/stats").status_code == 403


def test_rate_limit_forgets_idle_clients(monkeypatch):
    stale = datetime.utcnow() - timedelta(hours=1)
    monkeypatch.setattr(auth, "_login_attempts", defaultdict(list, {"10.0.0.9": [stale]}))

    assert auth._check_rate_limit("10.0.0.9") is False
    assert "10.0.0.9" not in auth._login_attempts


def test_successful_login_drops_attempt_history(client, monkeypatch):
    monkeypatch.setattr(auth, "_login_attempts", defaultdict(list))
    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert len(auth._login_attempts) == 1

    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert len(auth._login_attempts) == 0


def test_integrity_errors_map_to_json(app):
    @app.post("/api/test-orphan-button")
    def orphan_button():
        s = db_session()
        s.add(HeroButton(hero_section_id=999, text="Daftar", link="/register"))
        s.flush()

    @app.post("/api/test-stat-without-value")
    def stat_without_value():
        s = db_session()
        s.add(HeroStat(label="Jamaah"))
        s.flush()

    @app.post("/api/test-duplicate-user")
    def duplicate_user():
        s = db_session()
        s.add(User(email="admin@example.com", password_hash="x"))
        s.flush()

    client = app.test_client()

    r = client.post("/api/test-orphan-button")
    assert r.status_code == 400
    assert r.json["code"] == "CONSTRAINT_VIOLATION"
    assert r.json["message"] == "A related record is missing or still in use"

    r = client.post("/api/test-stat-without-value")
    assert r.status_code == 400
    assert r.json["code"] == "CONSTRAINT_VIOLATION"

    r = client.post("/api/test-duplicate-user")
    assert r.status_code == 409
    assert r.json["code"] == "DUPLICATE_ENTRY"


def test_production_requires_strong_secret(monkeypatch, tmp_path):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/db")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    with pytest.raises(RuntimeError):
        create_app()


def test_production_rejects_sqlite(monkeypatch, tmp_path):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    monkeypatch.setenv("SECRET_KEY", "a-real-secret")
    with pytest.raises(RuntimeError):
        create_app()
