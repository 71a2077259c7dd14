from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.errors import ApiError, not_found, validation_error
from app.tourcms.modules.homepage.models import HeroButton, HeroSection, HeroStat, Testimonial, WhyChooseUs
from app.tourcms.utils import apply_fields, clean_str, iso, to_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


HERO_FIELDS = {
    "title": "title",
    "subtitle": "subtitle",
    "description": "description",
    "buttonText": "button_text",
    "buttonLink": "button_link",
    "imageUrl": "image_url",
    "backgroundUrl": "background_url",
    "isActive": "is_active",
}

BUTTON_FIELDS = {
    "text": "text",
    "link": "link",
    "variant": "variant",
    "bgColor": "bg_color",
    "textColor": "text_color",
    "icon": "icon",
    "order": "order",
    "isActive": "is_active",
}

STAT_FIELDS = {
    "label": "label",
    "value": "value",
    "suffix": "suffix",
    "icon": "icon",
    "order": "order",
    "isActive": "is_active",
}

TESTIMONIAL_FIELDS = {
    "name": "name",
    "role": "role",
    "content": "content",
    "rating": "rating",
    "imageUrl": "image_url",
    "order": "order",
    "isActive": "is_active",
}

WHY_FIELDS = {
    "icon": "icon",
    "title": "title",
    "description": "description",
    "order": "order",
    "isActive": "is_active",
}


# ---------- Serialization ----------
def _timestamps(obj: Any) -> dict[str, Any]:
    return {"createdAt": iso(obj.created_at), "updatedAt": iso(obj.updated_at)}


def _dump(obj: Any, fields: dict[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {"id": obj.id}
    out.update({key: getattr(obj, attr) for key, attr in fields.items()})
    out.update(_timestamps(obj))
    return out


def serialize_hero(h: HeroSection) -> dict[str, Any]:
    return _dump(h, HERO_FIELDS)


def serialize_button(b: HeroButton) -> dict[str, Any]:
    out = _dump(b, BUTTON_FIELDS)
    out["heroSectionId"] = b.hero_section_id
    return out


def serialize_stat(st: HeroStat) -> dict[str, Any]:
    return _dump(st, STAT_FIELDS)


def serialize_testimonial(t: Testimonial) -> dict[str, Any]:
    return _dump(t, TESTIMONIAL_FIELDS)


def serialize_why(w: WhyChooseUs) -> dict[str, Any]:
    return _dump(w, WHY_FIELDS)


# ---------- Shared payload handling ----------
def _pick(payload: dict, text_keys: tuple[str, ...], *, partial: bool) -> dict[str, Any]:
    """Coerce the common shapes: text fields, ``order`` and ``isActive``."""
    data: dict[str, Any] = {}
    for key in text_keys:
        if key in payload or not partial:
            data[key] = clean_str(payload.get(key))
    if "order" in payload or not partial:
        data["order"] = to_int(payload.get("order"), 0) or 0
    if isinstance(payload.get("isActive"), bool):
        data["isActive"] = payload["isActive"]
    elif not partial:
        data["isActive"] = True
    return data


def _require(data: dict[str, Any], labels: dict[str, str]) -> None:
    errors = [f"{label} is required." for key, label in labels.items() if key in data and not data[key]]
    if errors:
        raise validation_error(errors)


def _get_or_404(s: "Session", model: type, obj_id: Any, label: str):
    obj = None
    oid = to_int(obj_id, None)
    if oid is not None:
        obj = s.get(model, oid)
    if not obj:
        raise not_found(label)
    return obj


def _audit(s: "Session", user: "User", action: str, obj: Any, **metadata: Any) -> None:
    record_event(
        s,
        actor=user,
        action=action,
        entity_type=type(obj).__name__,
        entity_id=obj.id,
        metadata=metadata or None,
    )


# ---------- Hero section ----------
def active_hero(s: "Session") -> HeroSection | None:
    return (
        s.query(HeroSection)
        .filter(HeroSection.is_active.is_(True))
        .order_by(HeroSection.updated_at.desc(), HeroSection.id.desc())
        .first()
    )


def get_hero_or_404(s: "Session", hero_id: Any) -> HeroSection:
    return _get_or_404(s, HeroSection, hero_id, "Hero section")


def create_hero(s: "Session", payload: dict, user: "User") -> HeroSection:
    """Create a new hero section."""
    data = _pick(
        payload,
        ("title", "subtitle", "description", "buttonText", "buttonLink", "imageUrl", "backgroundUrl"),
        partial=False,
    )
    data.pop("order")
    data["buttonText"] = data["buttonText"] or "Lihat Paket"
    data["buttonLink"] = data["buttonLink"] or "/products"
    hero = HeroSection()
    apply_fields(hero, data, HERO_FIELDS)
    s.add(hero)
    s.flush()
    _audit(s, user, "hero.create", hero, title=hero.title)
    return hero


def update_hero(s: "Session", hero: HeroSection, payload: dict, user: "User") -> HeroSection:
    data = _pick(
        payload,
        ("title", "subtitle", "description", "buttonText", "buttonLink", "imageUrl", "backgroundUrl"),
        partial=True,
    )
    data.pop("order", None)
    changes = apply_fields(hero, data, HERO_FIELDS)
    s.flush()
    _audit(s, user, "hero.edit", hero, changed=sorted(changes))
    return hero


# ---------- Hero buttons ----------
def list_buttons(s: "Session", hero_section_id: int) -> list[HeroButton]:
    return (
        s.query(HeroButton)
        .filter(HeroButton.hero_section_id == hero_section_id)
        .order_by(HeroButton.order.asc(), HeroButton.id.asc())
        .all()
    )


def get_button_or_404(s: "Session", button_id: Any) -> HeroButton:
    return _get_or_404(s, HeroButton, button_id, "Hero button")


def create_button(s: "Session", payload: dict, user: "User") -> HeroButton:
    """Attach a new button to an existing hero section."""
    data = _pick(payload, ("text", "link", "variant", "bgColor", "textColor", "icon"), partial=False)
    if not payload.get("heroSectionId") or not data["text"] or not data["link"]:
        raise ApiError(400, "heroSectionId, text, and link are required", "VALIDATION_ERROR")
    hero = get_hero_or_404(s, payload.get("heroSectionId"))
    data["variant"] = data["variant"] or "primary"

    button = HeroButton(hero_section_id=hero.id)
    apply_fields(button, data, BUTTON_FIELDS)
    s.add(button)
    s.flush()
    _audit(s, user, "hero_button.create", button, hero_section_id=hero.id, text=button.text)
    return button


def update_button(s: "Session", button: HeroButton, payload: dict, user: "User") -> HeroButton:
    data = _pick(payload, ("text", "link", "variant", "bgColor", "textColor", "icon"), partial=True)
    _require(data, {"text": "Text", "link": "Link", "variant": "Variant"})
    changes = apply_fields(button, data, BUTTON_FIELDS)
    s.flush()
    _audit(s, user, "hero_button.edit", button, changed=sorted(changes))
    return button


def delete_button(s: "Session", button: HeroButton, user: "User") -> None:
    _audit(s, user, "hero_button.delete", button, text=button.text)
    s.delete(button)


# ---------- Hero stats ----------
def list_stats(s: "Session") -> list[HeroStat]:
    return s.query(HeroStat).order_by(HeroStat.order.asc(), HeroStat.id.asc()).all()


def get_stat_or_404(s: "Session", stat_id: Any) -> HeroStat:
    return _get_or_404(s, HeroStat, stat_id, "Hero stat")


def create_stat(s: "Session", payload: dict, user: "User") -> HeroStat:
    data = _pick(payload, ("label", "value", "suffix", "icon"), partial=False)
    if not data["label"] or not data["value"]:
        raise ApiError(400, "Label and value are required", "VALIDATION_ERROR")
    stat = HeroStat()
    apply_fields(stat, data, STAT_FIELDS)
    s.add(stat)
    s.flush()
    _audit(s, user, "hero_stat.create", stat, label=stat.label)
    return stat


def update_stat(s: "Session", stat: HeroStat, payload: dict, user: "User") -> HeroStat:
    data = _pick(payload, ("label", "value", "suffix", "icon"), partial=True)
    _require(data, {"label": "Label", "value": "Value"})
    changes = apply_fields(stat, data, STAT_FIELDS)
    s.flush()
    _audit(s, user, "hero_stat.edit", stat, changed=sorted(changes))
    return stat


def delete_stat(s: "Session", stat: HeroStat, user: "User") -> None:
    _audit(s, user, "hero_stat.delete", stat, label=stat.label)
    s.delete(stat)


# ---------- Testimonials ----------
def _rating(payload: dict, data: dict[str, Any], *, partial: bool) -> None:
    if "rating" not in payload and partial:
        return
    raw = payload.get("rating")
    rating = 5 if raw in (None, "", 0) else to_int(raw, None)
    if rating is None or not 1 <= rating <= 5:
        raise validation_error(["Rating must be between 1 and 5."])
    data["rating"] = rating


def list_testimonials(s: "Session", *, include_inactive: bool = False) -> list[Testimonial]:
    q = s.query(Testimonial)
    if not include_inactive:
        q = q.filter(Testimonial.is_active.is_(True))
    return q.order_by(Testimonial.order.asc(), Testimonial.id.asc()).all()


def get_testimonial_or_404(s: "Session", testimonial_id: Any) -> Testimonial:
    return _get_or_404(s, Testimonial, testimonial_id, "Testimonial")


def create_testimonial(s: "Session", payload: dict, user: "User") -> Testimonial:
    """Create a new testimonial."""
    data = _pick(payload, ("name", "role", "content", "imageUrl"), partial=False)
    _require(data, {"name": "Name", "content": "Content"})
    _rating(payload, data, partial=False)
    t = Testimonial()
    apply_fields(t, data, TESTIMONIAL_FIELDS)
    s.add(t)
    s.flush()
    _audit(s, user, "testimonial.create", t, name=t.name)
    return t


def update_testimonial(s: "Session", t: Testimonial, payload: dict, user: "User") -> Testimonial:
    data = _pick(payload, ("name", "role", "content", "imageUrl"), partial=True)
    _require(data, {"name": "Name", "content": "Content"})
    _rating(payload, data, partial=True)
    changes = apply_fields(t, data, TESTIMONIAL_FIELDS)
    s.flush()
    _audit(s, user, "testimonial.edit", t, changed=sorted(changes))
    return t


def delete_testimonial(s: "Session", t: Testimonial, user: "User") -> None:
    _audit(s, user, "testimonial.delete", t, name=t.name)
    s.delete(t)


# ---------- Why choose us ----------
def list_why(s: "Session", *, include_inactive: bool = False) -> list[WhyChooseUs]:
    q = s.query(WhyChooseUs)
    if not include_inactive:
        q = q.filter(WhyChooseUs.is_active.is_(True))
    return q.order_by(WhyChooseUs.order.asc(), WhyChooseUs.id.asc()).all()


def get_why_or_404(s: "Session", item_id: Any) -> WhyChooseUs:
    return _get_or_404(s, WhyChooseUs, item_id, "Item")


def create_why(s: "Session", payload: dict, user: "User") -> WhyChooseUs:
    """Create a new why-choose-us item."""
    data = _pick(payload, ("icon", "title", "description"), partial=False)
    _require(data, {"title": "Title", "description": "Description"})
    item = WhyChooseUs()
    apply_fields(item, data, WHY_FIELDS)
    s.add(item)
    s.flush()
    _audit(s, user, "why_choose_us.create", item, title=item.title)
    return item


def update_why(s: "Session", item: WhyChooseUs, payload: dict, user: "User") -> WhyChooseUs:
    data = _pick(payload, ("icon", "title", "description"), partial=True)
    _require(data, {"title": "Title", "description": "Description"})
    changes = apply_fields(item, data, WHY_FIELDS)
    s.flush()
    _audit(s, user, "why_choose_us.edit", item, changed=sorted(changes))
    return item


def delete_why(s: "Session", item: WhyChooseUs, user: "User") -> None:
    _audit(s, user, "why_choose_us.delete", item, title=item.title)
    s.delete(item)
