from __future__ import annotations

from datetime import datetime, timedelta

from flask import Blueprint, current_app, jsonify, request

from app.tourcms.constants import VISITED_TODAY_COOKIE
from app.tourcms.db import db_session
from app.tourcms.modules.visitor_stats.service import record_visit, visitor_summary
from app.tourcms.rbac import require_admin
from app.tourcms.utils import int_arg

bp = Blueprint("visitor_stats", __name__)


@bp.post("/visitor/track")
def visitor_track():
    s = db_session()
    try:
        payload = request.get_json(silent=True) or {}
        page_type = payload.get("pageType") if isinstance(payload, dict) else None
        record_visit(s, page_type=page_type, unique=not request.cookies.get(VISITED_TODAY_COOKIE))
        s.commit()
    except Exception:
        # Tracking must never break the page that reported it.
        s.rollback()
        current_app.logger.exception("Visitor tracking failed")
        return jsonify({"success": False}), 200

    resp = jsonify({"success": True})
    # Aware local time; werkzeug reads naive datetimes as UTC.
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    resp.set_cookie(VISITED_TODAY_COOKIE, "1", expires=midnight, path="/")
    return resp


@bp.get("/visitor/stats")
@require_admin
def visitor_stats():
    s = db_session()
    return jsonify(visitor_summary(s, days=int_arg("days", 30, maximum=3650)))
