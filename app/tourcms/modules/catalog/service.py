from __future__ import annotations

import re
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import func

from app.tourcms.audit import record_event
from app.tourcms.errors import ApiError, not_found, validation_error
from app.tourcms.modules.catalog.models import Product, ProductType
from app.tourcms.utils import apply_fields, clean_str, iso, parse_bool, parse_datetime, slugify, to_number

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

PRODUCT_FIELDS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "price": "price",
    "discountPrice": "discount_price",
    "duration": "duration",
    "type": "type",
    "departure": "departure",
    "quota": "quota",
    "quotaFilled": "quota_filled",
    "features": "features",
    "itinerary": "itinerary",
    "images": "images",
    "isActive": "is_active",
    "isFeatured": "is_featured",
}

TYPE_FIELDS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "icon": "icon",
    "color": "color",
    "order": "order",
    "isActive": "is_active",
}


# ---------- Serialization ----------
def serialize_product(p: Product) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "slug": p.slug,
        "description": p.description,
        "price": to_number(p.price, 0),
        "discountPrice": None if p.discount_price is None else to_number(p.discount_price, 0),
        "duration": p.duration,
        "type": p.type,
        "departure": iso(p.departure),
        "quota": p.quota or 0,
        "quotaFilled": p.quota_filled or 0,
        "features": p.features if isinstance(p.features, list) else [],
        "itinerary": p.itinerary if isinstance(p.itinerary, list) else [],
        "images": p.images if isinstance(p.images, str) else "",
        "isActive": p.is_active,
        "isFeatured": p.is_featured,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def serialize_product_type(t: ProductType, product_count: int | None = None) -> dict[str, Any]:
    out = {
        "id": t.id,
        "name": t.name,
        "slug": t.slug,
        "description": t.description,
        "icon": t.icon,
        "color": t.color,
        "order": t.order,
        "isActive": t.is_active,
        "createdAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
    }
    if product_count is not None:
        out["productCount"] = product_count
    return out


# ---------- Validation ----------
def _length_error(label: str, value: str, lo: int, hi: int) -> str | None:
    if len(value) < lo:
        return f"{label} must be at least {lo} characters."
    if len(value) > hi:
        return f"{label} must be at most {hi} characters."
    return None


def _non_negative_int(label: str, raw: Any, errors: list[str]) -> int | None:
    n = to_number(raw, None)
    if n is None or not float(n).is_integer():
        errors.append(f"{label} must be a whole number.")
        return None
    if n < 0:
        errors.append(f"{label} must not be negative.")
        return None
    return int(n)


def _clean_itinerary(raw: Any, errors: list[str]) -> list[dict]:
    if not isinstance(raw, list):
        errors.append("Itinerary must be a list.")
        return []
    out = []
    for i, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            errors.append(f"Itinerary item {i} must be an object.")
            continue
        day = to_number(item.get("day"), None)
        title = clean_str(item.get("title"))
        description = clean_str(item.get("description"))
        if day is None or not float(day).is_integer() or day <= 0:
            errors.append(f"Itinerary item {i}: day must be a positive whole number.")
        if not title:
            errors.append(f"Itinerary item {i}: title is required.")
        if not description:
            errors.append(f"Itinerary item {i}: description is required.")
        if day is not None and title and description:
            out.append({"day": int(day), "title": title, "description": description})
    return out


def clean_product_payload(s: "Session", payload: dict, *, partial: bool) -> dict[str, Any]:
    """
    Validate a product payload (camelCase keys) and return the coerced values.
    With ``partial`` only the keys present are checked. Raises a 400 ApiError listing every problem.
    """
    errors: list[str] = []
    data: dict[str, Any] = {}

    def present(key: str) -> bool:
        return key in payload or not partial

    if present("name"):
        name = (payload.get("name") or "").strip() if isinstance(payload.get("name"), str) else ""
        err = _length_error("Name", name, 3, 200)
        if err:
            errors.append(err)
        data["name"] = name

    if present("slug") or (not partial and "name" in data):
        slug = payload.get("slug")
        slug = slug.strip() if isinstance(slug, str) else ""
        if not slug and not partial:
            slug = slugify(data.get("name"))
        err = _length_error("Slug", slug, 3, 200)
        if err:
            errors.append(err)
        elif not SLUG_RE.match(slug):
            errors.append("Slug may only contain lowercase letters, numbers and hyphens.")
        data["slug"] = slug

    if present("description"):
        desc = payload.get("description")
        desc = desc.strip() if isinstance(desc, str) else ""
        err = _length_error("Description", desc, 10, 5000)
        if err:
            errors.append(err)
        data["description"] = desc

    if present("price"):
        price = to_number(payload.get("price"), None)
        if price is None:
            errors.append("Price must be a number.")
        elif price <= 0:
            errors.append("Price must be greater than 0.")
        else:
            data["price"] = Decimal(str(price))

    if present("discountPrice"):
        raw = payload.get("discountPrice")
        if raw is None or raw == "":
            data["discountPrice"] = None
        else:
            discount = to_number(raw, None)
            if discount is None or discount <= 0:
                errors.append("Discount price must be greater than 0.")
            else:
                data["discountPrice"] = Decimal(str(discount))

    if present("duration"):
        duration = payload.get("duration")
        duration = duration.strip() if isinstance(duration, str) else ""
        err = _length_error("Duration", duration, 1, 100)
        if err:
            errors.append(err)
        data["duration"] = duration

    if present("type"):
        type_slug = clean_str(payload.get("type"))
        if not type_slug:
            errors.append("Product type is required.")
        elif s.query(ProductType.id).filter(ProductType.slug == type_slug).first() is None:
            errors.append(f"Unknown product type: {type_slug}.")
        data["type"] = type_slug

    if present("departure"):
        try:
            departure = parse_datetime(payload.get("departure"))
        except (TypeError, ValueError):
            departure = None
            errors.append("Departure must be a valid date.")
        else:
            if departure is None:
                errors.append("Departure date is required.")
        data["departure"] = departure

    if present("quota"):
        data["quota"] = _non_negative_int("Quota", payload.get("quota"), errors)

    if "quotaFilled" in payload:
        data["quotaFilled"] = _non_negative_int("Filled quota", payload.get("quotaFilled"), errors)
    elif not partial:
        data["quotaFilled"] = 0

    if present("features"):
        raw = payload.get("features")
        if not isinstance(raw, list):
            errors.append("Features must be a list.")
            features = []
        else:
            features = [str(f).strip() for f in raw if isinstance(f, str) and f.strip()]
        if not features:
            errors.append("At least one feature is required.")
        data["features"] = features

    if "itinerary" in payload:
        data["itinerary"] = _clean_itinerary(payload.get("itinerary"), errors)
    elif not partial:
        data["itinerary"] = []

    if "images" in payload:
        raw = payload.get("images")
        if isinstance(raw, list):
            raw = ",".join(str(u).strip() for u in raw if str(u).strip())
        data["images"] = raw if isinstance(raw, str) else ""
    elif not partial:
        data["images"] = ""

    for key, default in (("isActive", True), ("isFeatured", False)):
        if key in payload:
            value = parse_bool(payload.get(key))
            if value is None:
                errors.append(f"{key} must be true or false.")
            data[key] = value
        elif not partial:
            data[key] = default

    if errors:
        raise validation_error(errors)
    return data


# ---------- Products ----------
def list_products(
    s: "Session",
    *,
    type_slug: str | None = None,
    featured: bool = False,
    include_inactive: bool = False,
) -> list[Product]:
    q = s.query(Product)
    if not include_inactive:
        q = q.filter(Product.is_active.is_(True))
    if type_slug:
        q = q.filter(Product.type == type_slug)
    if featured:
        q = q.filter(Product.is_featured.is_(True))
    return q.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product_or_404(s: "Session", product_id: int) -> Product:
    p = s.get(Product, product_id)
    if not p:
        raise not_found("Product")
    return p


def create_product(s: "Session", payload: dict, user: "User") -> Product:
    """Create a new travel package."""
    data = clean_product_payload(s, payload, partial=False)
    product = Product()
    apply_fields(product, data, PRODUCT_FIELDS)
    s.add(product)
    s.flush()

    record_event(
        s,
        actor=user,
        action="product.create",
        entity_type="Product",
        entity_id=product.id,
        metadata={"name": product.name, "slug": product.slug, "type": product.type},
    )
    return product


def update_product(s: "Session", product: Product, payload: dict, user: "User") -> Product:
    """Apply a partial update to a package."""
    data = clean_product_payload(s, payload, partial=True)
    changes = apply_fields(product, data, PRODUCT_FIELDS)
    s.flush()

    record_event(
        s,
        actor=user,
        action="product.edit",
        entity_type="Product",
        entity_id=product.id,
        metadata={"name": product.name, "changed": sorted(changes)},
    )
    return product


def delete_product(s: "Session", product: Product, user: "User") -> None:
    """Delete a package and record the audit event."""
    record_event(
        s,
        actor=user,
        action="product.delete",
        entity_type="Product",
        entity_id=product.id,
        metadata={"name": product.name, "slug": product.slug},
    )
    s.delete(product)


def unit_price(p: Product) -> float:
    """Price charged per pilgrim: the discount price when set, else the list price."""
    price = p.discount_price if p.discount_price is not None else p.price
    return to_number(price, 0) or 0.0


# ---------- Product types ----------
def list_product_types(s: "Session", *, include_inactive: bool = False) -> list[ProductType]:
    q = s.query(ProductType)
    if not include_inactive:
        q = q.filter(ProductType.is_active.is_(True))
    return q.order_by(ProductType.order.asc(), ProductType.id.asc()).all()


def product_counts_by_type(s: "Session") -> dict[str, int]:
    rows = s.query(Product.type, func.count(Product.id)).group_by(Product.type).all()
    return {t: int(n) for t, n in rows}


def get_product_type_or_404(s: "Session", type_id: Any) -> ProductType:
    try:
        tid = int(type_id)
    except (TypeError, ValueError):
        raise ApiError(400, "Product type ID is required", "BAD_REQUEST")
    t = s.get(ProductType, tid)
    if not t:
        raise not_found("Product type")
    return t


def _clean_type_payload(payload: dict, *, partial: bool) -> dict[str, Any]:
    data: dict[str, Any] = {}
    name = clean_str(payload.get("name"))
    slug = clean_str(payload.get("slug"))
    if not partial and (not name or not slug):
        raise ApiError(400, "Name and slug are required", "VALIDATION_ERROR")
    if name:
        data["name"] = name
    if slug:
        data["slug"] = slug.upper()
    for key in ("description", "icon", "color"):
        if key in payload or not partial:
            data[key] = clean_str(payload.get(key))
    if "order" in payload or not partial:
        data["order"] = int(to_number(payload.get("order"), 0) or 0)
    if "isActive" in payload:
        data["isActive"] = bool(parse_bool(payload.get("isActive"), True))
    elif not partial:
        data["isActive"] = True
    return data


def create_product_type(s: "Session", payload: dict, user: "User") -> ProductType:
    """Create a new product type."""
    data = _clean_type_payload(payload, partial=False)
    t = ProductType()
    apply_fields(t, data, TYPE_FIELDS)
    s.add(t)
    s.flush()
    record_event(
        s,
        actor=user,
        action="product_type.create",
        entity_type="ProductType",
        entity_id=t.id,
        metadata={"name": t.name, "slug": t.slug},
    )
    return t


def update_product_type(s: "Session", t: ProductType, payload: dict, user: "User") -> ProductType:
    old_slug = t.slug
    data = _clean_type_payload(payload, partial=True)
    changes = apply_fields(t, data, TYPE_FIELDS)
    if t.slug != old_slug:
        # Products point at the slug string; carry them over to the new code.
        s.query(Product).filter(Product.type == old_slug).update({Product.type: t.slug}, synchronize_session=False)
    s.flush()
    record_event(
        s,
        actor=user,
        action="product_type.edit",
        entity_type="ProductType",
        entity_id=t.id,
        metadata={"name": t.name, "changed": sorted(changes)},
    )
    return t


def delete_product_type(s: "Session", t: ProductType, user: "User") -> None:
    """Delete a product type that no package still uses."""
    in_use = s.query(func.count(Product.id)).filter(Product.type == t.slug).scalar() or 0
    if in_use > 0:
        raise ApiError(
            400,
            f"Cannot delete product type. {in_use} product(s) are using this type.",
            "TYPE_IN_USE",
        )
    record_event(
        s,
        actor=user,
        action="product_type.delete",
        entity_type="ProductType",
        entity_id=t.id,
        metadata={"name": t.name, "slug": t.slug},
    )
    s.delete(t)


# ---------- Analytics ----------
def _summary_row(p: Product) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "type": p.type,
        "quota": p.quota,
        "quotaFilled": p.quota_filled,
        "price": to_number(p.price, 0),
    }


def product_analytics(s: "Session") -> dict[str, Any]:
    total_products = s.query(func.count(Product.id)).scalar() or 0
    active_products = s.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar() or 0
    featured_products = s.query(func.count(Product.id)).filter(Product.is_featured.is_(True)).scalar() or 0
    total_quota = int(s.query(func.coalesce(func.sum(Product.quota), 0)).scalar() or 0)
    total_filled = int(s.query(func.coalesce(func.sum(Product.quota_filled), 0)).scalar() or 0)

    by_type = (
        s.query(Product.type, func.count(Product.id))
        .filter(Product.is_active.is_(True))
        .group_by(Product.type)
        .order_by(Product.type.asc())
        .all()
    )

    top = (
        s.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.quota_filled.desc(), Product.id.asc())
        .limit(5)
        .all()
    )

    nearly_full = (
        s.query(Product)
        .filter(Product.is_active.is_(True))
        .filter(Product.quota > 0)
        .filter(Product.quota_filled >= Product.quota * 0.8)
        .order_by(Product.id.asc())
        .all()
    )

    return {
        "summary": {
            "totalProducts": total_products,
            "activeProducts": active_products,
            "totalQuota": total_quota,
            "totalQuotaFilled": total_filled,
            "featuredProducts": featured_products,
            "fillRate": (total_filled / total_quota) * 100 if total_quota > 0 else 0,
        },
        "productsByType": [{"type": t, "count": int(n)} for t, n in by_type],
        "topProducts": [_summary_row(p) for p in top],
        "nearlyFullProducts": [
            {k: v for k, v in _summary_row(p).items() if k != "price"} for p in nearly_full
        ],
    }
