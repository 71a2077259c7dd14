from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.errors import ApiError, not_found
from app.tourcms.modules.catalog.models import Product
from app.tourcms.modules.catalog.service import (
    create_product,
    create_product_type,
    delete_product,
    delete_product_type,
    get_product_or_404,
    get_product_type_or_404,
    list_product_types,
    list_products,
    product_analytics,
    product_counts_by_type,
    serialize_product,
    serialize_product_type,
    update_product,
    update_product_type,
)
from app.tourcms.rbac import current_user, require_admin, wants_admin_view
from app.tourcms.utils import json_body, parse_bool

bp = Blueprint("catalog", __name__)


# ---------- Products ----------
@bp.get("/products")
def products_list():
    s = db_session()
    products = list_products(
        s,
        type_slug=(request.args.get("type") or "").strip() or None,
        featured=parse_bool(request.args.get("featured"), False),
        include_inactive=wants_admin_view(),
    )
    return jsonify([serialize_product(p) for p in products])


@bp.post("/products")
@require_admin
def products_create():
    s = db_session()
    product = create_product(s, json_body(), current_user())
    s.commit()
    current_app.logger.info("Product created id=%s slug=%s", product.id, product.slug)
    return jsonify(serialize_product(product)), 201


@bp.get("/products/<int:product_id>")
def products_detail(product_id: int):
    s = db_session()
    return jsonify(serialize_product(get_product_or_404(s, product_id)))


@bp.get("/products/slug/<slug>")
def products_by_slug(slug: str):
    s = db_session()
    product = s.query(Product).filter(Product.slug == slug).one_or_none()
    if not product:
        raise not_found("Product")
    return jsonify(serialize_product(product))


@bp.put("/products/<int:product_id>")
@require_admin
def products_update(product_id: int):
    s = db_session()
    product = get_product_or_404(s, product_id)
    update_product(s, product, json_body(), current_user())
    s.commit()
    return jsonify(serialize_product(product))


@bp.delete("/products/<int:product_id>")
@require_admin
def products_delete(product_id: int):
    s = db_session()
    product = get_product_or_404(s, product_id)
    delete_product(s, product, current_user())
    s.commit()
    current_app.logger.info("Product deleted id=%s", product_id)
    return jsonify({"success": True, "message": "Product deleted successfully"})


# ---------- Product types ----------
@bp.get("/product-types")
def product_types_public():
    s = db_session()
    return jsonify({"success": True, "data": [serialize_product_type(t) for t in list_product_types(s)]})


@bp.get("/admin/product-types")
@require_admin
def product_types_admin_list():
    s = db_session()
    counts = product_counts_by_type(s)
    types = list_product_types(s, include_inactive=True)
    return jsonify(
        {"success": True, "data": [serialize_product_type(t, counts.get(t.slug, 0)) for t in types]}
    )


@bp.post("/admin/product-types")
@require_admin
def product_types_create():
    s = db_session()
    t = create_product_type(s, json_body(), current_user())
    s.commit()
    return jsonify({"success": True, "data": serialize_product_type(t)}), 201


@bp.put("/admin/product-types")
@require_admin
def product_types_update():
    s = db_session()
    payload = json_body()
    if not payload.get("id"):
        raise ApiError(400, "Product type ID is required", "BAD_REQUEST")
    t = get_product_type_or_404(s, payload.get("id"))
    update_product_type(s, t, payload, current_user())
    s.commit()
    return jsonify({"success": True, "data": serialize_product_type(t)})


@bp.delete("/admin/product-types")
@require_admin
def product_types_delete():
    s = db_session()
    type_id = request.args.get("id")
    if not type_id:
        raise ApiError(400, "Product type ID is required", "BAD_REQUEST")
    t = get_product_type_or_404(s, type_id)
    delete_product_type(s, t, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Product type deleted successfully"})


# ---------- Analytics ----------
@bp.get("/analytics")
@require_admin
def analytics():
    s = db_session()
    return jsonify(product_analytics(s))
