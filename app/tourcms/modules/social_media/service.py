from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.errors import not_found, validation_error
from app.tourcms.modules.social_media.models import SocialMedia
from app.tourcms.utils import apply_fields, clean_str, iso, to_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


FIELDS = {
    "name": "name",
    "icon": "icon",
    "url": "url",
    "bgColor": "bg_color",
    "hoverColor": "hover_color",
    "order": "order",
    "isActive": "is_active",
}

REQUIRED = {"name": "Name", "icon": "Icon", "url": "URL"}


def serialize_social(sm: SocialMedia) -> dict[str, Any]:
    return {
        "id": sm.id,
        "name": sm.name,
        "icon": sm.icon,
        "url": sm.url,
        "bgColor": sm.bg_color,
        "hoverColor": sm.hover_color,
        "order": sm.order,
        "isActive": sm.is_active,
        "createdAt": iso(sm.created_at),
        "updatedAt": iso(sm.updated_at),
    }


def validate_social_payload(payload: dict, *, partial: bool) -> dict[str, Any]:
    errors: list[str] = []
    data: dict[str, Any] = {}
    for key, label in REQUIRED.items():
        if key in payload or not partial:
            value = clean_str(payload.get(key))
            if not value:
                errors.append(f"{label} is required.")
            data[key] = value
    for key in ("bgColor", "hoverColor"):
        value = clean_str(payload.get(key))
        if value:
            data[key] = value
    if "order" in payload:
        data["order"] = to_int(payload.get("order"), 0) or 0
    if isinstance(payload.get("isActive"), bool):
        data["isActive"] = payload["isActive"]
    if errors:
        raise validation_error(errors)
    return data


def list_social(s: "Session", *, include_inactive: bool = False) -> list[SocialMedia]:
    q = s.query(SocialMedia)
    if not include_inactive:
        q = q.filter(SocialMedia.is_active.is_(True))
    return q.order_by(SocialMedia.order.asc(), SocialMedia.id.asc()).all()


def get_social_or_404(s: "Session", social_id: int) -> SocialMedia:
    sm = s.get(SocialMedia, social_id)
    if not sm:
        raise not_found("Social media")
    return sm


def create_social(s: "Session", payload: dict, user: "User") -> SocialMedia:
    data = validate_social_payload(payload, partial=False)
    sm = SocialMedia(bg_color="bg-blue-500", hover_color="bg-blue-600", order=0, is_active=True)
    apply_fields(sm, data, FIELDS)
    s.add(sm)
    s.flush()
    record_event(
        s,
        actor=user,
        action="social_media.create",
        entity_type="SocialMedia",
        entity_id=sm.id,
        metadata={"name": sm.name, "url": sm.url},
    )
    return sm


def update_social(s: "Session", sm: SocialMedia, payload: dict, user: "User") -> SocialMedia:
    changes = apply_fields(sm, validate_social_payload(payload, partial=True), FIELDS)
    s.flush()
    record_event(
        s,
        actor=user,
        action="social_media.edit",
        entity_type="SocialMedia",
        entity_id=sm.id,
        metadata={"name": sm.name, "changed": sorted(changes)},
    )
    return sm


def delete_social(s: "Session", sm: SocialMedia, user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="social_media.delete",
        entity_type="SocialMedia",
        entity_id=sm.id,
        metadata={"name": sm.name},
    )
    s.delete(sm)
