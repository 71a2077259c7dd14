from datetime import datetime
from decimal import Decimal
from urllib.parse import unquote

import pytest

from app.tourcms import create_app
from app.tourcms.db import session_scope
from app.tourcms.models import Base
from app.tourcms.modules.cart.service import format_date_id, format_idr
from app.tourcms.modules.catalog.models import Product, ProductType
from app.tourcms.modules.site_settings.models import Setting


def _product(name, slug, price, discount=None, active=True):
    return Product(
        name=name,
        slug=slug,
        description="Paket perjalanan ibadah lengkap.",
        price=Decimal(price),
        discount_price=Decimal(discount) if discount else None,
        duration="12 Hari",
        type="UMROH",
        departure=datetime(2026, 12, 1),
        quota=40,
        quota_filled=0,
        features=["Hotel"],
        itinerary=[],
        images="",
        is_active=active,
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
        s.add(ProductType(name="Umroh", slug="UMROH", order=1, is_active=True))
        s.add(_product("Umroh Reguler", "umroh-reguler", "35000000"))
        s.add(_product("Umroh Plus Turki", "umroh-plus-turki", "45000000", discount="42500000"))
        s.add(_product("Umroh Lama", "umroh-lama", "20000000", active=False))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _ids(app):
    with session_scope(app) as s:
        return {p.slug: p.id for p in s.query(Product).all()}


def test_empty_cart(client):
    r = client.get("/api/cart")
    assert r.status_code == 200
    assert r.json == {"items": [], "totalItems": 0, "totalPrice": 0}


def test_add_merges_lines_and_prices_from_catalog(client, app):
    ids = _ids(app)
    r = client.post("/api/cart", json={"productId": ids["umroh-reguler"], "quantity": 2})
    assert r.status_code == 201
    r = client.post("/api/cart", json={"productId": ids["umroh-reguler"]})
    r = client.post("/api/cart", json={"productId": ids["umroh-plus-turki"], "quantity": 1})

    body = r.json
    assert len(body["items"]) == 2
    first, second = body["items"]
    assert first["quantity"] == 3
    assert first["unitPrice"] == 35000000
    assert first["subtotal"] == 105000000
    assert first["id"].startswith(f"{ids['umroh-reguler']}-")
    assert second["unitPrice"] == 42500000
    assert body["totalItems"] == 4
    assert body["totalPrice"] == 147500000


def test_add_rejects_inactive_or_unknown(client, app):
    ids = _ids(app)
    assert client.post("/api/cart", json={"productId": ids["umroh-lama"]}).status_code == 404
    assert client.post("/api/cart", json={"productId": 9999}).status_code == 404
    assert client.post("/api/cart", json={}).status_code == 400
    r = client.post("/api/cart", json={"productId": ids["umroh-reguler"], "quantity": 0})
    assert r.status_code == 400


def test_update_remove_and_clear(client, app):
    ids = _ids(app)
    client.post("/api/cart", json={"productId": ids["umroh-reguler"]})
    item = client.post("/api/cart", json={"productId": ids["umroh-plus-turki"]}).json["items"][1]

    r = client.put(f"/api/cart/{item['id']}", json={"quantity": 5})
    assert r.json["items"][1]["quantity"] == 5
    assert r.json["totalItems"] == 6

    r = client.put(f"/api/cart/{item['id']}", json={"quantity": 0})
    assert len(r.json["items"]) == 1

    assert client.put("/api/cart/unknown", json={"quantity": 1}).status_code == 404
    assert client.delete("/api/cart/unknown").status_code == 404

    line_id = r.json["items"][0]["id"]
    r = client.delete(f"/api/cart/{line_id}")
    assert r.json["items"] == []

    client.post("/api/cart", json={"productId": ids["umroh-reguler"]})
    r = client.delete("/api/cart")
    assert r.json["totalItems"] == 0
    assert client.get("/api/cart").json["items"] == []


def test_lines_for_hidden_products_are_dropped(client, app):
    ids = _ids(app)
    client.post("/api/cart", json={"productId": ids["umroh-reguler"]})
    with session_scope(app) as s:
        s.get(Product, ids["umroh-reguler"]).is_active = False
    assert client.get("/api/cart").json["items"] == []


def test_checkout_builds_whatsapp_link(client, app):
    ids = _ids(app)
    assert client.get("/api/cart/checkout").status_code == 400

    client.post("/api/cart", json={"productId": ids["umroh-reguler"], "quantity": 2})
    r = client.get("/api/cart/checkout")
    assert r.status_code == 200
    body = r.json
    assert body["url"].startswith("https://wa.me/6281234567890?text=")
    assert unquote(body["url"].split("?text=", 1)[1]) == body["message"]
    assert "1. *Umroh Reguler*" in body["message"]
    assert "Keberangkatan: 1 Desember 2026" in body["message"]
    assert "Jumlah Jamaah: 2 orang" in body["message"]
    assert "TOTAL PEMBAYARAN: Rp 70.000.000" in body["message"]
    assert body["totalPrice"] == 70000000

    with session_scope(app) as s:
        s.add(Setting(key="whatsapp_number", value="6289999999999"))
    assert client.get("/api/cart/checkout").json["url"].startswith("https://wa.me/6289999999999?")


def test_formatters():
    assert format_idr(35000000) == "Rp 35.000.000"
    assert format_idr(0) == "Rp 0"
    assert format_date_id(datetime(2027, 3, 9)) == "9 Maret 2027"
    assert format_date_id(None) == "-"
