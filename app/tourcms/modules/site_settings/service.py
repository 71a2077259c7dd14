from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.constants import DEFAULT_WHATSAPP_NUMBER
from app.tourcms.db import upsert_insert
from app.tourcms.errors import ApiError, not_found
from app.tourcms.modules.site_settings.models import Setting
from app.tourcms.utils import clean_str, iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


DEFAULT_SETTINGS: list[tuple[str, str, str]] = [
    ("site_name", "Tour Haji & Umroh", "Nama website"),
    ("whatsapp_number", DEFAULT_WHATSAPP_NUMBER, "Nomor WhatsApp untuk checkout"),
    ("site_description", "Layanan tour Haji dan Umroh terpercaya", "Deskripsi website"),
    ("site_email", "info@tourhajiumroh.com", "Email kontak"),
    ("site_phone", "021-12345678", "Nomor telepon"),
    ("site_logo", "", "Logo website untuk homepage"),
    ("site_logo_admin", "", "Logo untuk halaman admin/CMS"),
    ("site_favicon", "", "Favicon website (icon di browser tab)"),
    (
        "footer_about",
        "Melayani perjalanan ibadah haji dan umroh dengan penuh amanah dan profesional.",
        "Teks about di footer",
    ),
    (
        "footer_links",
        json.dumps(
            [
                {"label": "Paket Umroh", "href": "/products?type=UMROH", "order": 1},
                {"label": "Paket Haji", "href": "/products?type=HAJI", "order": 2},
                {"label": "Galeri", "href": "/gallery", "order": 3},
                {"label": "Blog & Artikel", "href": "/blog", "order": 4},
            ]
        ),
        "Footer links dalam format JSON array",
    ),
    (
        "footer_social_media",
        json.dumps(
            [
                {"platform": "Facebook", "url": "https://facebook.com", "icon": "Facebook"},
                {"platform": "Instagram", "url": "https://instagram.com", "icon": "Instagram"},
                {"platform": "Youtube", "url": "https://youtube.com", "icon": "Youtube"},
            ]
        ),
        "Social media links dalam format JSON array",
    ),
    ("footer_address", "Jl. Contoh No. 123\nJakarta, Indonesia", "Alamat kantor untuk footer"),
    ("footer_copyright", "2024 Khairo Tour. All rights reserved.", "Custom copyright text"),
]


def serialize_setting(st: Setting) -> dict[str, Any]:
    return {
        "id": st.id,
        "key": st.key,
        "value": st.value,
        "description": st.description,
        "createdAt": iso(st.created_at),
        "updatedAt": iso(st.updated_at),
    }


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # Lists/objects (footer links etc.) are stored as JSON text.
    return json.dumps(value)


def settings_map(s: "Session") -> dict[str, str]:
    return {st.key: st.value for st in s.query(Setting).order_by(Setting.key.asc()).all()}


def get_setting_or_404(s: "Session", key: str) -> Setting:
    st = s.query(Setting).filter(Setting.key == key).one_or_none()
    if not st:
        raise not_found("Setting")
    return st


def get_value(s: "Session", key: str, default: str | None = None) -> str | None:
    st = s.query(Setting).filter(Setting.key == key).one_or_none()
    return st.value if st and st.value else default


def upsert_setting(s: "Session", key: str, value: Any, description: Any = None) -> None:
    """Single-statement insert-or-update keyed on ``settings.key``."""
    now = datetime.utcnow()
    text = _as_text(value)
    description = clean_str(description)
    stmt = upsert_insert(s, Setting.__table__).values(
        key=key, value=text, description=description, created_at=now, updated_at=now
    )
    set_: dict[str, Any] = {"value": text, "updated_at": now}
    if description is not None:
        set_["description"] = description
    s.execute(stmt.on_conflict_do_update(index_elements=["key"], set_=set_))


def save_setting(s: "Session", payload: dict, user: "User") -> Setting:
    key = (payload.get("key") or "").strip() if isinstance(payload.get("key"), str) else ""
    if not key:
        raise ApiError(400, "Setting key is required", "VALIDATION_ERROR")
    upsert_setting(s, key, payload.get("value"), payload.get("description"))
    st = get_setting_or_404(s, key)
    s.refresh(st)
    record_event(s, actor=user, action="setting.save", entity_type="Setting", entity_id=st.id, metadata={"key": key})
    return st


def save_settings(s: "Session", values: Any, user: "User") -> dict[str, str]:
    if not isinstance(values, dict) or not values:
        raise ApiError(400, "settings must be a non-empty object", "VALIDATION_ERROR")
    for key, value in values.items():
        if not str(key).strip():
            raise ApiError(400, "Setting key is required", "VALIDATION_ERROR")
        upsert_setting(s, str(key).strip(), value)
    record_event(
        s,
        actor=user,
        action="setting.bulk_save",
        entity_type="Setting",
        metadata={"keys": sorted(str(k).strip() for k in values)},
    )
    return settings_map(s)
