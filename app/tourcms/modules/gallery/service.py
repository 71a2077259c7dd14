from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.errors import not_found, validation_error
from app.tourcms.modules.gallery.models import Gallery
from app.tourcms.utils import apply_fields, clean_str, iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


FIELDS = {
    "title": "title",
    "description": "description",
    "imageUrl": "image_url",
    "category": "category",
    "isActive": "is_active",
}


def serialize_gallery(g: Gallery) -> dict[str, Any]:
    return {
        "id": g.id,
        "title": g.title,
        "description": g.description,
        "imageUrl": g.image_url,
        "category": g.category,
        "isActive": g.is_active,
        "createdAt": iso(g.created_at),
        "updatedAt": iso(g.updated_at),
    }


def _clean(payload: dict, *, partial: bool) -> dict[str, Any]:
    errors: list[str] = []
    data: dict[str, Any] = {}
    for key, label in (("title", "Title"), ("imageUrl", "Image URL")):
        if key in payload or not partial:
            value = clean_str(payload.get(key))
            if not value:
                errors.append(f"{label} is required.")
            data[key] = value
    for key in ("description", "category"):
        if key in payload:
            data[key] = clean_str(payload.get(key))
    if isinstance(payload.get("isActive"), bool):
        data["isActive"] = payload["isActive"]
    if errors:
        raise validation_error(errors)
    return data


def list_galleries(
    s: "Session",
    *,
    include_inactive: bool = False,
    category: str | None = None,
    limit: int | None = None,
) -> list[Gallery]:
    q = s.query(Gallery)
    if not include_inactive:
        q = q.filter(Gallery.is_active.is_(True))
    if category:
        q = q.filter(Gallery.category == category)
    q = q.order_by(Gallery.created_at.desc(), Gallery.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def get_gallery_or_404(s: "Session", gallery_id: int) -> Gallery:
    g = s.get(Gallery, gallery_id)
    if not g:
        raise not_found("Gallery")
    return g


def create_gallery(s: "Session", payload: dict, user: "User") -> Gallery:
    """Create a new gallery item."""
    data = _clean(payload, partial=False)
    item = Gallery(is_active=True)
    apply_fields(item, data, FIELDS)
    s.add(item)
    s.flush()
    record_event(
        s,
        actor=user,
        action="gallery.create",
        entity_type="Gallery",
        entity_id=item.id,
        metadata={"title": item.title},
    )
    return item


def update_gallery(s: "Session", item: Gallery, payload: dict, user: "User") -> Gallery:
    """Update a gallery item."""
    changes = apply_fields(item, _clean(payload, partial=True), FIELDS)
    s.flush()
    record_event(
        s,
        actor=user,
        action="gallery.edit",
        entity_type="Gallery",
        entity_id=item.id,
        metadata={"title": item.title, "changed": sorted(changes)},
    )
    return item


def delete_gallery(s: "Session", item: Gallery, user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="gallery.delete",
        entity_type="Gallery",
        entity_id=item.id,
        metadata={"title": item.title},
    )
    s.delete(item)
