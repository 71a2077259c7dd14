"""Tests for site content: blog, gallery, home page blocks, partners and social links."""
import pytest
from sqlalchemy import delete
from werkzeug.security import generate_password_hash

from app.tourcms import create_app
from app.tourcms.db import session_scope
from app.tourcms.models import Base, User
from app.tourcms.modules.homepage.models import HeroButton, HeroSection


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
        s.add(User(email="admin@example.com", name="Tim Khairo", password_hash=generate_password_hash("pw"), is_active=True))

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    client.post("/api/auth/login", json={"email": "admin@example.com", "password": "pw"})


# ---------- Blog ----------
def test_blog_create_derives_slug_and_excerpt(client):
    _login(client)
    content = "<p>" + "Persiapan umroh dimulai dari niat. " * 10 + "</p>"
    r = client.post("/api/blog", json={"title": "Tips Persiapan Umroh!", "content": content, "isPublished": True})
    assert r.status_code == 201
    body = r.json
    assert body["slug"] == "tips-persiapan-umroh"
    assert body["excerpt"].endswith("...")
    assert "<p>" not in body["excerpt"]
    assert len(body["excerpt"]) == 163
    assert body["author"] == "Tim Khairo"
    assert body["publishedAt"] is not None


def test_blog_requires_title(client):
    _login(client)
    r = client.post("/api/blog", json={"content": "Tanpa judul"})
    assert r.status_code == 400
    assert r.json["code"] == "VALIDATION_ERROR"


def test_blog_title_without_latin_letters_gets_generated_slug(client):
    _login(client)
    r = client.post("/api/blog", json={"title": "عمرة", "content": "isi artikel"})
    assert r.status_code == 201
    assert r.json["title"] == "عمرة"
    assert r.json["slug"].startswith("blog-")


def test_blog_drafts_hidden_from_public(client):
    _login(client)
    client.post("/api/blog", json={"title": "Published post", "content": "Isi", "isPublished": True})
    draft = client.post("/api/blog", json={"title": "Draft post", "content": "Isi"}).json
    assert draft["isPublished"] is False
    assert draft["publishedAt"] is None

    assert len(client.get("/api/blog?admin=true").json) == 2
    r = client.get("/api/blogs?published=true")
    assert r.json["total"] == 1
    r = client.get("/api/blogs")
    assert [b["title"] for b in r.json["blogs"]] == ["Published post", "Draft post"]

    client.post("/api/auth/logout")
    assert [b["title"] for b in client.get("/api/blog").json] == ["Published post"]
    assert client.get("/api/blog/slug/published-post").status_code == 200
    assert client.get("/api/blog/slug/draft-post").status_code == 404


def test_blog_update_and_delete(client):
    _login(client)
    bid = client.post("/api/blog", json={"title": "Old title", "content": "Isi"}).json["id"]

    r = client.put(f"/api/blog/{bid}", json={"title": "New title", "isPublished": True})
    assert r.status_code == 200
    assert r.json["slug"] == "new-title"
    assert r.json["publishedAt"] is not None

    r = client.put(f"/api/blog/{bid}", json={"isPublished": False})
    assert r.json["publishedAt"] is None

    assert client.delete(f"/api/blog/{bid}").json == {"success": True}
    assert client.get(f"/api/blog/{bid}").status_code == 404
    assert client.put(f"/api/blog/{bid}", json={"title": "x"}).status_code == 404


# ---------- Gallery ----------
def test_gallery_crud(client):
    _login(client)
    r = client.post("/api/gallery", json={"title": "Masjid Nabawi"})
    assert r.status_code == 400
    assert "Image URL is required." in r.json["details"]

    r = client.post("/api/gallery", json={"title": "Masjid Nabawi", "imageUrl": "/uploads/images/a.jpg", "category": "madinah"})
    assert r.status_code == 201
    gid = r.json["id"]
    client.post("/api/gallery", json={"title": "Ka'bah", "imageUrl": "/uploads/images/b.jpg", "category": "makkah"})

    r = client.get("/api/galleries?category=madinah")
    assert r.json["total"] == 1
    assert r.json["galleries"][0]["title"] == "Masjid Nabawi"

    r = client.put(f"/api/gallery/{gid}", json={"isActive": False})
    assert r.status_code == 200
    assert [g["title"] for g in client.get("/api/gallery").json] == ["Ka'bah"]

    assert client.delete(f"/api/gallery/{gid}").status_code == 200
    assert client.delete(f"/api/gallery/{gid}").status_code == 404


# ---------- Home page ----------
def test_hero_section_defaults(client):
    assert client.get("/api/hero").json == {}

    _login(client)
    r = client.post("/api/hero", json={"title": "Umroh Nyaman Bersama Kami"})
    assert r.status_code == 201
    assert r.json["buttonText"] == "Lihat Paket"
    assert r.json["buttonLink"] == "/products"
    hid = r.json["id"]

    r = client.put("/api/hero", json={"subtitle": "No id"})
    assert r.status_code == 400

    r = client.put("/api/hero", json={"id": hid, "subtitle": "Amanah dan profesional"})
    assert r.status_code == 200
    assert client.get("/api/hero").json["subtitle"] == "Amanah dan profesional"


def test_hero_buttons(client, app):
    _login(client)
    hid = client.post("/api/hero", json={"title": "Hero"}).json["id"]

    r = client.post("/api/admin/hero-buttons", json={"text": "Daftar", "link": "/register"})
    assert r.status_code == 400
    r = client.post("/api/admin/hero-buttons", json={"heroSectionId": 999, "text": "Daftar", "link": "/register"})
    assert r.status_code == 404

    r = client.post("/api/admin/hero-buttons", json={"heroSectionId": hid, "text": "Daftar", "link": "/register", "order": 2})
    assert r.status_code == 201
    assert r.json["variant"] == "primary"
    bid = r.json["id"]
    client.post("/api/admin/hero-buttons", json={"heroSectionId": hid, "text": "Kontak", "link": "/contact", "order": 1})

    assert client.get("/api/admin/hero-buttons").status_code == 400
    r = client.get(f"/api/admin/hero-buttons?heroSectionId={hid}")
    assert [b["text"] for b in r.json] == ["Kontak", "Daftar"]

    r = client.put(f"/api/admin/hero-buttons/{bid}", json={"variant": "outline"})
    assert r.json["variant"] == "outline"
    r = client.put(f"/api/admin/hero-buttons/{bid}", json={"text": ""})
    assert r.status_code == 400

    assert client.delete(f"/api/admin/hero-buttons/{bid}").status_code == 200
    with session_scope(app) as s:
        assert s.query(HeroButton).count() == 1


def test_hero_section_delete_cascades_to_buttons(app):
    with session_scope(app) as s:
        hero = HeroSection(title="Hero")
        s.add(hero)
        s.flush()
        s.add_all(
            [
                HeroButton(hero_section_id=hero.id, text="Daftar", link="/register"),
                HeroButton(hero_section_id=hero.id, text="Kontak", link="/contact"),
            ]
        )

    # Core delete bypasses the ORM cascade; only the database FK can remove the buttons.
    with session_scope(app) as s:
        s.execute(delete(HeroSection))

    with session_scope(app) as s:
        assert s.query(HeroButton).count() == 0


def test_hero_stats(client):
    _login(client)
    r = client.post("/api/admin/hero-stats", json={"label": "Jamaah"})
    assert r.status_code == 400

    r = client.post("/api/admin/hero-stats", json={"label": "Jamaah", "value": "5000+", "order": 1})
    assert r.status_code == 201
    sid = r.json["data"]["id"]

    client.post("/api/auth/logout")
    r = client.get("/api/admin/hero-stats")
    assert r.json["success"] is True
    assert r.json["data"][0]["value"] == "5000+"
    assert client.get(f"/api/admin/hero-stats/{sid}").json["data"]["label"] == "Jamaah"
    assert client.put(f"/api/admin/hero-stats/{sid}", json={"value": "6000+"}).status_code == 401

    _login(client)
    r = client.put(f"/api/admin/hero-stats/{sid}", json={"value": "6000+"})
    assert r.json["data"]["value"] == "6000+"
    assert client.delete(f"/api/admin/hero-stats/{sid}").status_code == 200
    assert client.get(f"/api/admin/hero-stats/{sid}").status_code == 404


def test_testimonials(client):
    _login(client)
    r = client.post("/api/testimonials", json={"name": "Ibu Siti", "content": "Pelayanan sangat baik", "rating": 7})
    assert r.status_code == 400

    r = client.post("/api/testimonials", json={"name": "Ibu Siti", "content": "Pelayanan sangat baik"})
    assert r.status_code == 201
    assert r.json["rating"] == 5
    tid = r.json["id"]

    r = client.put(f"/api/testimonials/{tid}", json={"rating": 4, "isActive": False})
    assert r.json["rating"] == 4
    assert client.get("/api/testimonials").json == []
    assert len(client.get("/api/testimonials?admin=true").json) == 1
    assert client.delete(f"/api/testimonials/{tid}").status_code == 200


def test_why_choose_us(client):
    _login(client)
    r = client.post("/api/why-choose-us", json={"title": "Berpengalaman"})
    assert r.status_code == 400

    r = client.post("/api/why-choose-us", json={"icon": "Award", "title": "Berpengalaman", "description": "10 tahun melayani"})
    assert r.status_code == 201
    wid = r.json["id"]
    r = client.put(f"/api/why-choose-us/{wid}", json={"order": 3})
    assert r.json["order"] == 3
    assert client.get("/api/why-choose-us").json[0]["title"] == "Berpengalaman"
    assert client.delete(f"/api/why-choose-us/{wid}").status_code == 200
    assert client.put(f"/api/why-choose-us/{wid}", json={"order": 1}).status_code == 404


# ---------- Partners ----------
def test_partner_section_falls_back_to_default(client):
    r = client.get("/api/partner-section")
    assert r.json["title"] == "Rekanan Kami"
    assert r.json["isActive"] is True

    _login(client)
    r = client.put("/api/admin/partner-section", json={"title": "Mitra Resmi", "description": None})
    assert r.status_code == 200
    assert r.json["title"] == "Mitra Resmi"
    assert client.get("/api/partner-section").json["title"] == "Mitra Resmi"


def test_partners_crud(client):
    _login(client)
    r = client.post("/api/admin/partners", json={"name": "Saudia"})
    assert r.status_code == 400

    r = client.post("/api/admin/partners", json={"name": "Saudia", "logoUrl": "/uploads/images/saudia.png"})
    assert r.status_code == 201
    pid = r.json["data"]["id"]

    r = client.put("/api/admin/partners", json={"id": pid, "name": "", "websiteUrl": "https://saudia.com"})
    assert r.status_code == 200
    assert r.json["data"]["name"] == "Saudia"
    assert r.json["data"]["websiteUrl"] == "https://saudia.com"

    assert [p["name"] for p in client.get("/api/partners").json] == ["Saudia"]
    assert client.put("/api/admin/partners", json={"name": "x"}).status_code == 400
    assert client.delete("/api/admin/partners").status_code == 400
    assert client.delete(f"/api/admin/partners?id={pid}").status_code == 200
    assert client.get("/api/partners").json == []


# ---------- Social media ----------
def test_social_media_crud(client):
    _login(client)
    r = client.post("/api/admin/social-media", json={"name": "Instagram", "url": "https://instagram.com/x"})
    assert r.status_code == 400
    assert "Icon is required." in r.json["details"]

    r = client.post("/api/admin/social-media", json={"name": "Instagram", "icon": "Instagram", "url": "https://instagram.com/x"})
    assert r.status_code == 201
    assert r.json["bgColor"] == "bg-blue-500"
    assert r.json["hoverColor"] == "bg-blue-600"
    sid = r.json["id"]

    r = client.put(f"/api/admin/social-media/{sid}", json={"isActive": False})
    assert r.status_code == 200
    assert client.get("/api/social-media").json == []
    assert len(client.get("/api/admin/social-media").json) == 1

    assert client.delete(f"/api/admin/social-media/{sid}").status_code == 200
    assert client.delete(f"/api/admin/social-media/{sid}").status_code == 404
