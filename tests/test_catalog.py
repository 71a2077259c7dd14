"""Tests for the product catalog: packages, product types and analytics."""
import pytest
from werkzeug.security import generate_password_hash

from app.tourcms import create_app
from app.tourcms.db import session_scope
from app.tourcms.models import AuditEvent, Base, User
from app.tourcms.modules.catalog.models import Product, ProductType


def _seed_types(s):
    s.add_all(
        [
            ProductType(name="Haji", slug="HAJI", order=1, is_active=True),
            ProductType(name="Umroh", slug="UMROH", order=2, is_active=True),
        ]
    )


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
        _seed_types(s)
        s.add(User(email="admin@example.com", password_hash=generate_password_hash("pw"), is_active=True))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 200


def _payload(**overrides):
    data = {
        "name": "Umroh Reguler 12 Hari",
        "description": "Paket umroh reguler dengan hotel bintang lima dekat Masjidil Haram.",
        "price": 35000000,
        "duration": "12 Hari",
        "type": "UMROH",
        "departure": "2026-12-01",
        "quota": 40,
        "features": ["Hotel bintang 5", "Visa umroh", "Muthawif berpengalaman"],
        "itinerary": [{"day": 1, "title": "Berangkat", "description": "Jakarta - Jeddah"}],
        "images": "/uploads/products/a.jpg,/uploads/products/b.jpg",
    }
    data.update(overrides)
    return data


def test_product_create_returns_201(client, app):
    _login(client)
    r = client.post("/api/products", json=_payload())
    assert r.status_code == 201
    body = r.json
    assert isinstance(body["id"], int)
    assert body["slug"] == "umroh-reguler-12-hari"
    assert body["price"] == 35000000
    assert body["discountPrice"] is None
    assert body["quotaFilled"] == 0
    assert body["isActive"] is True
    assert body["isFeatured"] is False
    assert body["departure"].startswith("2026-12-01")
    assert body["itinerary"][0]["title"] == "Berangkat"

    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "product.create").one()
        assert ev.entity_id == str(body["id"])
        assert ev.actor_user_email == "admin@example.com"


def test_product_create_validation(client):
    _login(client)
    r = client.post("/api/products", json=_payload(name="ab", price=-5, features=[], type="CRUISE"))
    assert r.status_code == 400
    assert r.json["code"] == "VALIDATION_ERROR"
    details = r.json["details"]
    assert any("Name" in d for d in details)
    assert any("Price" in d for d in details)
    assert any("feature" in d for d in details)
    assert any("CRUISE" in d for d in details)


def test_product_create_rejects_bad_departure(client):
    _login(client)
    r = client.post("/api/products", json=_payload(departure="next week"))
    assert r.status_code == 400
    assert "Departure must be a valid date." in r.json["details"]


def test_product_duplicate_slug_is_409(client):
    _login(client)
    assert client.post("/api/products", json=_payload()).status_code == 201
    r = client.post("/api/products", json=_payload())
    assert r.status_code == 409
    assert r.json["code"] == "DUPLICATE_ENTRY"


def test_product_update_and_unauthenticated_put(client):
    _login(client)
    pid = client.post("/api/products", json=_payload()).json["id"]

    r = client.put(f"/api/products/{pid}", json={"discountPrice": "32000000", "isFeatured": True})
    assert r.status_code == 200
    assert r.json["discountPrice"] == 32000000
    assert r.json["isFeatured"] is True
    assert r.json["name"] == "Umroh Reguler 12 Hari"

    client.post("/api/auth/logout")
    r = client.put(f"/api/products/{pid}", json={"name": "Changed name"})
    assert r.status_code == 401

    r = client.get(f"/api/products/{pid}")
    assert r.json["name"] == "Umroh Reguler 12 Hari"


def test_product_update_missing_is_404(client):
    _login(client)
    r = client.put("/api/products/9999", json={"name": "Whatever name"})
    assert r.status_code == 404


def test_product_delete(client):
    _login(client)
    pid = client.post("/api/products", json=_payload()).json["id"]

    r = client.delete(f"/api/products/{pid}")
    assert r.status_code == 200
    assert r.json == {"success": True, "message": "Product deleted successfully"}

    r = client.delete(f"/api/products/{pid}")
    assert r.status_code == 404
    assert r.json["code"] == "NOT_FOUND"


def test_delete_nonexistent_product_is_404(client):
    _login(client)
    r = client.delete("/api/products/424242")
    assert r.status_code == 404


def test_public_list_filters(client):
    _login(client)
    client.post("/api/products", json=_payload())
    client.post("/api/products", json=_payload(name="Haji Plus 2027", type="HAJI", isFeatured=True))
    client.post("/api/products", json=_payload(name="Umroh Ramadhan", isActive=False))
    client.post("/api/auth/logout")

    names = {p["name"] for p in client.get("/api/products").json}
    assert names == {"Umroh Reguler 12 Hari", "Haji Plus 2027"}

    r = client.get("/api/products?type=HAJI")
    assert [p["name"] for p in r.json] == ["Haji Plus 2027"]

    r = client.get("/api/products?featured=true")
    assert [p["name"] for p in r.json] == ["Haji Plus 2027"]

    # ?admin=true only widens the list for a signed-in admin
    assert len(client.get("/api/products?admin=true").json) == 2
    _login(client)
    assert len(client.get("/api/products?admin=true").json) == 3


def test_product_by_slug(client):
    _login(client)
    client.post("/api/products", json=_payload())
    r = client.get("/api/products/slug/umroh-reguler-12-hari")
    assert r.status_code == 200
    assert r.json["type"] == "UMROH"
    assert client.get("/api/products/slug/nope").status_code == 404


def test_product_types_crud(client, app):
    r = client.get("/api/product-types")
    assert r.status_code == 200
    assert [t["slug"] for t in r.json["data"]] == ["HAJI", "UMROH"]

    _login(client)
    r = client.post("/api/admin/product-types", json={"name": "Wisata Halal", "slug": "wisata"})
    assert r.status_code == 201
    tid = r.json["data"]["id"]
    assert r.json["data"]["slug"] == "WISATA"

    r = client.post("/api/admin/product-types", json={"name": "No slug"})
    assert r.status_code == 400

    r = client.put("/api/admin/product-types", json={"name": "Missing id"})
    assert r.status_code == 400

    client.post("/api/products", json=_payload(type="WISATA"))
    r = client.put("/api/admin/product-types", json={"id": tid, "slug": "halal"})
    assert r.status_code == 200
    assert r.json["data"]["slug"] == "HALAL"

    with session_scope(app) as s:
        assert s.query(Product).one().type == "HALAL"

    r = client.get("/api/admin/product-types")
    counts = {t["slug"]: t["productCount"] for t in r.json["data"]}
    assert counts == {"HAJI": 0, "UMROH": 0, "HALAL": 1}


def test_product_type_delete_blocked_while_in_use(client):
    _login(client)
    client.post("/api/products", json=_payload())
    types = {t["slug"]: t["id"] for t in client.get("/api/admin/product-types").json["data"]}

    r = client.delete(f"/api/admin/product-types?id={types['UMROH']}")
    assert r.status_code == 400
    assert r.json["code"] == "TYPE_IN_USE"
    assert r.json["message"] == "Cannot delete product type. 1 product(s) are using this type."

    r = client.delete(f"/api/admin/product-types?id={types['HAJI']}")
    assert r.status_code == 200

    assert client.delete("/api/admin/product-types").status_code == 400
    assert client.delete("/api/admin/product-types?id=9999").status_code == 404


def test_analytics(client):
    _login(client)
    client.post("/api/products", json=_payload(quota=10, quotaFilled=9))
    client.post("/api/products", json=_payload(name="Haji Khusus", type="HAJI", quota=30, quotaFilled=3, isFeatured=True))

    r = client.get("/api/analytics")
    assert r.status_code == 200
    summary = r.json["summary"]
    assert summary["totalProducts"] == 2
    assert summary["activeProducts"] == 2
    assert summary["featuredProducts"] == 1
    assert summary["totalQuota"] == 40
    assert summary["totalQuotaFilled"] == 12
    assert summary["fillRate"] == pytest.approx(30.0)
    assert {row["type"]: row["count"] for row in r.json["productsByType"]} == {"HAJI": 1, "UMROH": 1}
    assert r.json["topProducts"][0]["quotaFilled"] == 9
    assert [p["name"] for p in r.json["nearlyFullProducts"]] == ["Umroh Reguler 12 Hari"]
    assert "price" not in r.json["nearlyFullProducts"][0]
