from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.tourcms.db import db_session
from app.tourcms.modules.blog.service import (
    create_blog,
    delete_blog,
    get_blog_or_404,
    get_published_by_slug,
    list_blogs,
    search_blogs,
    serialize_blog,
    update_blog,
)
from app.tourcms.rbac import current_user, require_admin, wants_admin_view
from app.tourcms.utils import int_arg, json_body

bp = Blueprint("blog", __name__)


@bp.get("/blog")
def blog_list():
    s = db_session()
    return jsonify([serialize_blog(b) for b in list_blogs(s, include_unpublished=wants_admin_view())])


@bp.get("/blogs")
def blogs_search():
    s = db_session()
    blogs = search_blogs(
        s,
        limit=int_arg("limit", 10, maximum=100),
        published_only=request.args.get("published") == "true",
        category=(request.args.get("category") or "").strip() or None,
    )
    return jsonify({"blogs": [serialize_blog(b) for b in blogs], "total": len(blogs)})


@bp.post("/blog")
@require_admin
def blog_create():
    s = db_session()
    blog = create_blog(s, json_body(), current_user())
    s.commit()
    return jsonify(serialize_blog(blog)), 201


@bp.get("/blog/<int:blog_id>")
def blog_detail(blog_id: int):
    s = db_session()
    return jsonify(serialize_blog(get_blog_or_404(s, blog_id)))


@bp.get("/blog/slug/<slug>")
def blog_by_slug(slug: str):
    s = db_session()
    return jsonify(serialize_blog(get_published_by_slug(s, slug)))


@bp.put("/blog/<int:blog_id>")
@require_admin
def blog_update(blog_id: int):
    s = db_session()
    blog = get_blog_or_404(s, blog_id)
    update_blog(s, blog, json_body(), current_user())
    s.commit()
    return jsonify(serialize_blog(blog))


@bp.delete("/blog/<int:blog_id>")
@require_admin
def blog_delete(blog_id: int):
    s = db_session()
    blog = get_blog_or_404(s, blog_id)
    delete_blog(s, blog, current_user())
    s.commit()
    return jsonify({"success": True})
