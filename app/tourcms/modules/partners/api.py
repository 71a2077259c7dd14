from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.errors import ApiError
from app.tourcms.modules.partners.service import (
    create_partner,
    delete_partner,
    get_or_create_section,
    get_partner_or_404,
    list_partners,
    public_section,
    save_section,
    serialize_partner,
    serialize_section,
    update_partner,
)
from app.tourcms.rbac import current_user, require_admin
from app.tourcms.utils import json_body

bp = Blueprint("partners", __name__)


@bp.get("/partners")
def partners_public():
    s = db_session()
    return jsonify([serialize_partner(p) for p in list_partners(s)])


@bp.get("/partner-section")
def partner_section_public():
    s = db_session()
    return jsonify(public_section(s))


# ---------- Admin ----------
@bp.get("/admin/partners")
@require_admin
def partners_admin_list():
    s = db_session()
    return jsonify({"success": True, "data": [serialize_partner(p) for p in list_partners(s, include_inactive=True)]})


@bp.post("/admin/partners")
@require_admin
def partners_create():
    s = db_session()
    p = create_partner(s, json_body(), current_user())
    s.commit()
    return jsonify({"success": True, "data": serialize_partner(p)}), 201


@bp.put("/admin/partners")
@require_admin
def partners_update():
    s = db_session()
    payload = json_body()
    if not payload.get("id"):
        raise ApiError(400, "Partner ID is required", "BAD_REQUEST")
    p = get_partner_or_404(s, payload["id"])
    update_partner(s, p, payload, current_user())
    s.commit()
    return jsonify({"success": True, "data": serialize_partner(p)})


@bp.delete("/admin/partners")
@require_admin
def partners_delete():
    partner_id = request.args.get("id")
    if not partner_id:
        raise ApiError(400, "Partner ID is required", "BAD_REQUEST")
    s = db_session()
    p = get_partner_or_404(s, partner_id)
    delete_partner(s, p, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Partner deleted successfully"})


@bp.get("/admin/partner-section")
@require_admin
def partner_section_admin():
    s = db_session()
    ps = get_or_create_section(s)
    s.commit()
    return jsonify(serialize_section(ps))


@bp.put("/admin/partner-section")
@require_admin
def partner_section_update():
    s = db_session()
    ps = save_section(s, json_body(), current_user())
    s.commit()
    return jsonify(serialize_section(ps))
