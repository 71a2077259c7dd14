from __future__ import annotations

from flask import Blueprint, jsonify

from app.tourcms.db import db_session
from app.tourcms.modules.social_media.service import (
    create_social,
    delete_social,
    get_social_or_404,
    list_social,
    serialize_social,
    update_social,
)
from app.tourcms.rbac import current_user, require_admin
from app.tourcms.utils import json_body

bp = Blueprint("social_media", __name__)


@bp.get("/social-media")
def social_public():
    s = db_session()
    return jsonify([serialize_social(sm) for sm in list_social(s)])


@bp.get("/admin/social-media")
@require_admin
def social_admin_list():
    s = db_session()
    return jsonify([serialize_social(sm) for sm in list_social(s, include_inactive=True)])


@bp.post("/admin/social-media")
@require_admin
def social_create():
    s = db_session()
    sm = create_social(s, json_body(), current_user())
    s.commit()
    return jsonify(serialize_social(sm)), 201


@bp.put("/admin/social-media/<int:social_id>")
@require_admin
def social_update(social_id: int):
    s = db_session()
    sm = get_social_or_404(s, social_id)
    update_social(s, sm, json_body(), current_user())
    s.commit()
    return jsonify(serialize_social(sm))


@bp.delete("/admin/social-media/<int:social_id>")
@require_admin
def social_delete(social_id: int):
    s = db_session()
    sm = get_social_or_404(s, social_id)
    delete_social(s, sm, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Social media deleted successfully"})
