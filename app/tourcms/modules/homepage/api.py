from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.errors import ApiError
from app.tourcms.modules.homepage import service as svc
from app.tourcms.rbac import current_user, require_admin, wants_admin_view
from app.tourcms.utils import json_body, to_int

bp = Blueprint("homepage", __name__)


# ---------- Hero section ----------
@bp.get("/hero")
def hero_get():
    s = db_session()
    hero = svc.active_hero(s)
    return jsonify(svc.serialize_hero(hero) if hero else {})


@bp.post("/hero")
@require_admin
def hero_create():
    s = db_session()
    hero = svc.create_hero(s, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_hero(hero)), 201


@bp.put("/hero")
@require_admin
def hero_update():
    s = db_session()
    payload = json_body()
    if not payload.get("id"):
        raise ApiError(400, "Hero section ID is required", "BAD_REQUEST")
    hero = svc.get_hero_or_404(s, payload["id"])
    svc.update_hero(s, hero, payload, current_user())
    s.commit()
    return jsonify(svc.serialize_hero(hero))


# ---------- Hero buttons ----------
@bp.get("/admin/hero-buttons")
@require_admin
def hero_buttons_list():
    hero_section_id = to_int(request.args.get("heroSectionId"), None)
    if hero_section_id is None:
        raise ApiError(400, "heroSectionId is required", "BAD_REQUEST")
    s = db_session()
    return jsonify([svc.serialize_button(b) for b in svc.list_buttons(s, hero_section_id)])


@bp.post("/admin/hero-buttons")
@require_admin
def hero_buttons_create():
    s = db_session()
    button = svc.create_button(s, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_button(button)), 201


@bp.put("/admin/hero-buttons/<int:button_id>")
@require_admin
def hero_buttons_update(button_id: int):
    s = db_session()
    button = svc.get_button_or_404(s, button_id)
    svc.update_button(s, button, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_button(button))


@bp.delete("/admin/hero-buttons/<int:button_id>")
@require_admin
def hero_buttons_delete(button_id: int):
    s = db_session()
    button = svc.get_button_or_404(s, button_id)
    svc.delete_button(s, button, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Hero button deleted successfully"})


# ---------- Hero stats ----------
@bp.get("/admin/hero-stats")
def hero_stats_list():
    s = db_session()
    return jsonify({"success": True, "data": [svc.serialize_stat(st) for st in svc.list_stats(s)]})


@bp.post("/admin/hero-stats")
@require_admin
def hero_stats_create():
    s = db_session()
    stat = svc.create_stat(s, json_body(), current_user())
    s.commit()
    return jsonify({"success": True, "message": "Hero stat created", "data": svc.serialize_stat(stat)}), 201


@bp.get("/admin/hero-stats/<int:stat_id>")
def hero_stats_detail(stat_id: int):
    s = db_session()
    return jsonify({"success": True, "data": svc.serialize_stat(svc.get_stat_or_404(s, stat_id))})


@bp.put("/admin/hero-stats/<int:stat_id>")
@require_admin
def hero_stats_update(stat_id: int):
    s = db_session()
    stat = svc.get_stat_or_404(s, stat_id)
    svc.update_stat(s, stat, json_body(), current_user())
    s.commit()
    return jsonify({"success": True, "message": "Hero stat updated", "data": svc.serialize_stat(stat)})


@bp.delete("/admin/hero-stats/<int:stat_id>")
@require_admin
def hero_stats_delete(stat_id: int):
    s = db_session()
    stat = svc.get_stat_or_404(s, stat_id)
    svc.delete_stat(s, stat, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Hero stat deleted"})


# ---------- Testimonials ----------
@bp.get("/testimonials")
def testimonials_list():
    s = db_session()
    items = svc.list_testimonials(s, include_inactive=wants_admin_view())
    return jsonify([svc.serialize_testimonial(t) for t in items])


@bp.post("/testimonials")
@require_admin
def testimonials_create():
    s = db_session()
    t = svc.create_testimonial(s, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_testimonial(t)), 201


@bp.put("/testimonials/<int:testimonial_id>")
@require_admin
def testimonials_update(testimonial_id: int):
    s = db_session()
    t = svc.get_testimonial_or_404(s, testimonial_id)
    svc.update_testimonial(s, t, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_testimonial(t))


@bp.delete("/testimonials/<int:testimonial_id>")
@require_admin
def testimonials_delete(testimonial_id: int):
    s = db_session()
    t = svc.get_testimonial_or_404(s, testimonial_id)
    svc.delete_testimonial(s, t, current_user())
    s.commit()
    return jsonify({"success": True})


# ---------- Why choose us ----------
@bp.get("/why-choose-us")
def why_list():
    s = db_session()
    return jsonify([svc.serialize_why(w) for w in svc.list_why(s, include_inactive=wants_admin_view())])


@bp.post("/why-choose-us")
@require_admin
def why_create():
    s = db_session()
    item = svc.create_why(s, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_why(item)), 201


@bp.put("/why-choose-us/<int:item_id>")
@require_admin
def why_update(item_id: int):
    s = db_session()
    item = svc.get_why_or_404(s, item_id)
    svc.update_why(s, item, json_body(), current_user())
    s.commit()
    return jsonify(svc.serialize_why(item))


@bp.delete("/why-choose-us/<int:item_id>")
@require_admin
def why_delete(item_id: int):
    s = db_session()
    item = svc.get_why_or_404(s, item_id)
    svc.delete_why(s, item, current_user())
    s.commit()
    return jsonify({"success": True})
