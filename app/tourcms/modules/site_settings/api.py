from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.modules.site_settings.service import (
    get_setting_or_404,
    save_setting,
    save_settings,
    serialize_setting,
    settings_map,
)
from app.tourcms.rbac import current_user, require_admin
from app.tourcms.utils import json_body

bp = Blueprint("site_settings", __name__)


@bp.get("/settings")
def settings_get():
    s = db_session()
    key = (request.args.get("key") or "").strip()
    if key:
        return jsonify(serialize_setting(get_setting_or_404(s, key)))
    return jsonify(settings_map(s))


@bp.post("/settings")
@require_admin
def settings_save_one():
    s = db_session()
    st = save_setting(s, json_body(), current_user())
    s.commit()
    return jsonify(serialize_setting(st))


@bp.put("/settings")
@require_admin
def settings_save_many():
    s = db_session()
    values = save_settings(s, json_body().get("settings"), current_user())
    s.commit()
    return jsonify({"success": True, "settings": values})
