from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.constants import DEFAULT_PARTNER_SECTION
from app.tourcms.errors import ApiError, not_found
from app.tourcms.modules.partners.models import Partner, PartnerSection
from app.tourcms.utils import apply_fields, clean_str, iso, to_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


PARTNER_FIELDS = {
    "name": "name",
    "logoUrl": "logo_url",
    "websiteUrl": "website_url",
    "order": "order",
    "isActive": "is_active",
}

SECTION_FIELDS = {"title": "title", "description": "description", "isActive": "is_active"}


def serialize_partner(p: Partner) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "logoUrl": p.logo_url,
        "websiteUrl": p.website_url,
        "order": p.order,
        "isActive": p.is_active,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def serialize_section(ps: PartnerSection) -> dict[str, Any]:
    return {
        "id": ps.id,
        "title": ps.title,
        "description": ps.description,
        "isActive": ps.is_active,
        "createdAt": iso(ps.created_at),
        "updatedAt": iso(ps.updated_at),
    }


# ---------- Partners ----------
def list_partners(s: "Session", *, include_inactive: bool = False) -> list[Partner]:
    q = s.query(Partner)
    if not include_inactive:
        q = q.filter(Partner.is_active.is_(True))
    return q.order_by(Partner.order.asc(), Partner.id.asc()).all()


def get_partner_or_404(s: "Session", partner_id: Any) -> Partner:
    pid = to_int(partner_id, None)
    p = s.get(Partner, pid) if pid is not None else None
    if not p:
        raise not_found("Partner")
    return p


def create_partner(s: "Session", payload: dict, user: "User") -> Partner:
    name = clean_str(payload.get("name"))
    logo_url = clean_str(payload.get("logoUrl"))
    if not name or not logo_url:
        raise ApiError(400, "Name and logo URL are required", "VALIDATION_ERROR")
    p = Partner(
        name=name,
        logo_url=logo_url,
        website_url=clean_str(payload.get("websiteUrl")),
        order=to_int(payload.get("order"), 0) or 0,
        is_active=payload["isActive"] if isinstance(payload.get("isActive"), bool) else True,
    )
    s.add(p)
    s.flush()
    record_event(s, actor=user, action="partner.create", entity_type="Partner", entity_id=p.id, metadata={"name": name})
    return p


def update_partner(s: "Session", p: Partner, payload: dict, user: "User") -> Partner:
    data: dict[str, Any] = {}
    # Blank name/logo are ignored rather than clearing a required column.
    for key in ("name", "logoUrl"):
        value = clean_str(payload.get(key))
        if value:
            data[key] = value
    if "websiteUrl" in payload:
        data["websiteUrl"] = clean_str(payload.get("websiteUrl"))
    if "order" in payload:
        data["order"] = to_int(payload.get("order"), 0) or 0
    if isinstance(payload.get("isActive"), bool):
        data["isActive"] = payload["isActive"]
    changes = apply_fields(p, data, PARTNER_FIELDS)
    s.flush()
    record_event(
        s,
        actor=user,
        action="partner.edit",
        entity_type="Partner",
        entity_id=p.id,
        metadata={"name": p.name, "changed": sorted(changes)},
    )
    return p


def delete_partner(s: "Session", p: Partner, user: "User") -> None:
    record_event(s, actor=user, action="partner.delete", entity_type="Partner", entity_id=p.id, metadata={"name": p.name})
    s.delete(p)


# ---------- Partner section ----------
def public_section(s: "Session") -> dict[str, Any]:
    ps = s.query(PartnerSection).filter(PartnerSection.is_active.is_(True)).order_by(PartnerSection.id.asc()).first()
    return serialize_section(ps) if ps else dict(DEFAULT_PARTNER_SECTION)


def get_or_create_section(s: "Session") -> PartnerSection:
    ps = s.query(PartnerSection).order_by(PartnerSection.id.asc()).first()
    if ps is None:
        ps = PartnerSection(
            title=DEFAULT_PARTNER_SECTION["title"],
            description=DEFAULT_PARTNER_SECTION["description"],
            is_active=DEFAULT_PARTNER_SECTION["isActive"],
        )
        s.add(ps)
        s.flush()
    return ps


def save_section(s: "Session", payload: dict, user: "User") -> PartnerSection:
    ps = get_or_create_section(s)
    data: dict[str, Any] = {}
    title = clean_str(payload.get("title"))
    if title:
        data["title"] = title
    if "description" in payload:
        data["description"] = clean_str(payload.get("description"))
    if isinstance(payload.get("isActive"), bool):
        data["isActive"] = payload["isActive"]
    changes = apply_fields(ps, data, SECTION_FIELDS)
    s.flush()
    record_event(
        s,
        actor=user,
        action="partner_section.edit",
        entity_type="PartnerSection",
        entity_id=ps.id,
        metadata={"changed": sorted(changes)},
    )
    return ps
