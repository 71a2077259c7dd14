from datetime import date, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.tourcms import create_app
from app.tourcms.db import session_scope
from app.tourcms.models import Base, User
from app.tourcms.modules.visitor_stats.models import VisitorStat
from app.tourcms.modules.visitor_stats.service import growth_percent, record_visit, visitor_summary


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
        s.add(User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def test_track_counts_unique_once_per_day(client, app):
    r = client.post("/api/visitor/track", json={"pageType": "home"})
    assert r.status_code == 200
    assert r.json == {"success": True}
    assert "visited_today=1" in r.headers["Set-Cookie"]

    client.post("/api/visitor/track", json={"pageType": "product"})
    client.post("/api/visitor/track")

    with session_scope(app) as s:
        row = s.query(VisitorStat).one()
        assert row.date == date.today()
        assert row.page_views == 3
        assert row.unique_visitors == 1
        assert row.product_views == 1


def test_stats_requires_admin(client):
    assert client.get("/api/visitor/stats").status_code == 401


def test_stats_summary(client, app):
    today = date.today()
    with session_scope(app) as s:
        s.add(VisitorStat(date=today - timedelta(days=1), page_views=10, unique_visitors=4, product_views=2))
        s.add(VisitorStat(date=today - timedelta(days=40), page_views=99, unique_visitors=99, product_views=99))
    client.post("/api/visitor/track", json={"pageType": "product"})

    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    r = client.get("/api/visitor/stats")
    assert r.status_code == 200
    body = r.json
    assert body["today"] == {"pageViews": 1, "uniqueVisitors": 1, "productViews": 1}
    assert body["yesterday"]["pageViews"] == 10
    assert body["growth"]["pageViews"] == pytest.approx(-90.0)
    assert body["totals"]["pageViews"] == 11
    assert body["totals"]["averagePerDay"]["pageViews"] == 6
    assert [d["date"] for d in body["chartData"]] == [
        (today - timedelta(days=1)).isoformat(),
        today.isoformat(),
    ]

    r = client.get("/api/visitor/stats?days=60")
    assert r.json["totals"]["pageViews"] == 110


def test_growth_percent():
    assert growth_percent(5, 0) == 100
    assert growth_percent(0, 0) == 0
    assert growth_percent(15, 10) == pytest.approx(50.0)


def test_record_visit_and_empty_summary(app):
    day = date(2026, 3, 1)
    with session_scope(app) as s:
        record_visit(s, page_type=None, unique=True, day=day)
        record_visit(s, page_type="product", unique=False, day=day)
    with session_scope(app) as s:
        summary = visitor_summary(s, days=7, today=day)
        assert summary["today"] == {"pageViews": 2, "uniqueVisitors": 1, "productViews": 1}
        assert summary["growth"]["pageViews"] == 100

        empty = visitor_summary(s, days=7, today=date(2020, 1, 1))
        assert empty["chartData"] == []
        assert empty["totals"]["averagePerDay"]["pageViews"] == 0
