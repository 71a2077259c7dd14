from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.modules.gallery.service import (
    create_gallery,
    delete_gallery,
    get_gallery_or_404,
    list_galleries,
    serialize_gallery,
    update_gallery,
)
from app.tourcms.rbac import current_user, require_admin, wants_admin_view
from app.tourcms.utils import int_arg, json_body

bp = Blueprint("gallery", __name__)


@bp.get("/gallery")
def gallery_list():
    s = db_session()
    return jsonify([serialize_gallery(g) for g in list_galleries(s, include_inactive=wants_admin_view())])


@bp.get("/galleries")
def galleries_search():
    s = db_session()
    items = list_galleries(
        s,
        category=(request.args.get("category") or "").strip() or None,
        limit=int_arg("limit", 20, maximum=200),
    )
    return jsonify({"galleries": [serialize_gallery(g) for g in items], "total": len(items)})


@bp.post("/gallery")
@require_admin
def gallery_create():
    s = db_session()
    item = create_gallery(s, json_body(), current_user())
    s.commit()
    return jsonify(serialize_gallery(item)), 201


@bp.get("/gallery/<int:gallery_id>")
def gallery_detail(gallery_id: int):
    s = db_session()
    return jsonify(serialize_gallery(get_gallery_or_404(s, gallery_id)))


@bp.put("/gallery/<int:gallery_id>")
@require_admin
def gallery_update(gallery_id: int):
    s = db_session()
    item = get_gallery_or_404(s, gallery_id)
    update_gallery(s, item, json_body(), current_user())
    s.commit()
    return jsonify(serialize_gallery(item))


@bp.delete("/gallery/<int:gallery_id>")
@require_admin
def gallery_delete(gallery_id: int):
    s = db_session()
    item = get_gallery_or_404(s, gallery_id)
    delete_gallery(s, item, current_user())
    s.commit()
    return jsonify({"success": True})
