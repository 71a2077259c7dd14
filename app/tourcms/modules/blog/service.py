from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.tourcms.audit import record_event
from app.tourcms.errors import not_found, validation_error
from app.tourcms.modules.blog.models import Blog
from app.tourcms.utils import apply_fields, clean_str, iso, make_excerpt, slugify

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.tourcms.models import User


FIELDS = {
    "title": "title",
    "slug": "slug",
    "content": "content",
    "excerpt": "excerpt",
    "coverImage": "cover_image",
    "author": "author",
    "category": "category",
    "isPublished": "is_published",
    "publishedAt": "published_at",
}


def serialize_blog(b: Blog) -> dict[str, Any]:
    return {
        "id": b.id,
        "title": b.title,
        "slug": b.slug,
        "content": b.content,
        "excerpt": b.excerpt,
        "coverImage": b.cover_image,
        "author": b.author,
        "category": b.category,
        "isPublished": b.is_published,
        "publishedAt": iso(b.published_at),
        "createdAt": iso(b.created_at),
        "updatedAt": iso(b.updated_at),
    }


def _derive(payload: dict, data: dict[str, Any]) -> None:
    """Slug follows the title and the excerpt follows the content unless given explicitly."""
    if "slug" in payload or "title" in payload:
        slug = clean_str(payload.get("slug"))
        if not slug and isinstance(payload.get("title"), str):
            slug = slugify(payload["title"])
        if slug:
            data["slug"] = slug
    if "excerpt" in payload or "content" in payload:
        excerpt = clean_str(payload.get("excerpt"))
        if not excerpt and isinstance(payload.get("content"), str):
            excerpt = make_excerpt(payload["content"])
        if excerpt:
            data["excerpt"] = excerpt


def _published_fields(payload: dict, data: dict[str, Any]) -> None:
    if isinstance(payload.get("isPublished"), bool):
        data["isPublished"] = payload["isPublished"]
        data["publishedAt"] = datetime.utcnow() if payload["isPublished"] else None


def list_blogs(s: "Session", *, include_unpublished: bool = False) -> list[Blog]:
    q = s.query(Blog)
    if not include_unpublished:
        q = q.filter(Blog.is_published.is_(True))
    return q.order_by(Blog.created_at.desc(), Blog.id.desc()).all()


def search_blogs(
    s: "Session",
    *,
    limit: int = 10,
    published_only: bool = False,
    category: str | None = None,
) -> list[Blog]:
    q = s.query(Blog)
    if published_only:
        q = q.filter(Blog.is_published.is_(True))
    if category:
        q = q.filter(Blog.category == category)
    # Drafts have no publishedAt; keep them after the dated posts.
    q = q.order_by(Blog.published_at.is_(None), Blog.published_at.desc(), Blog.id.desc())
    return q.limit(limit).all()


def get_blog_or_404(s: "Session", blog_id: int) -> Blog:
    b = s.get(Blog, blog_id)
    if not b:
        raise not_found("Blog")
    return b


def get_published_by_slug(s: "Session", slug: str) -> Blog:
    b = s.query(Blog).filter(Blog.slug == slug, Blog.is_published.is_(True)).one_or_none()
    if not b:
        raise not_found("Blog")
    return b


def create_blog(s: "Session", payload: dict, user: "User") -> Blog:
    """Create a new blog post."""
    title = clean_str(payload.get("title"))
    if not title:
        raise validation_error(["Title is required."])

    data: dict[str, Any] = {
        "title": title,
        "content": payload.get("content") if isinstance(payload.get("content"), str) else "",
        "coverImage": clean_str(payload.get("coverImage")),
        "author": clean_str(payload.get("author")) or user.name or user.email,
        "category": clean_str(payload.get("category")),
        "isPublished": False,
        "publishedAt": None,
    }
    _derive({**payload, "title": title}, data)
    if not data.get("slug"):
        # Titles with no latin letters or digits (Arabic, for one) slugify to nothing.
        data["slug"] = f"blog-{int(time.time() * 1000)}"
    _published_fields(payload, data)

    blog = Blog()
    apply_fields(blog, data, FIELDS)
    s.add(blog)
    s.flush()

    record_event(
        s,
        actor=user,
        action="blog.create",
        entity_type="Blog",
        entity_id=blog.id,
        metadata={"title": blog.title, "slug": blog.slug, "published": blog.is_published},
    )
    return blog


def update_blog(s: "Session", blog: Blog, payload: dict, user: "User") -> Blog:
    data: dict[str, Any] = {}
    if "title" in payload:
        title = clean_str(payload.get("title"))
        if not title:
            raise validation_error(["Title is required."])
        data["title"] = title
    if "content" in payload:
        data["content"] = payload.get("content") if isinstance(payload.get("content"), str) else ""
    for key in ("coverImage", "author", "category"):
        if key in payload:
            data[key] = clean_str(payload.get(key))
    _derive(payload, data)
    _published_fields(payload, data)

    changes = apply_fields(blog, data, FIELDS)
    s.flush()

    record_event(
        s,
        actor=user,
        action="blog.edit",
        entity_type="Blog",
        entity_id=blog.id,
        metadata={"title": blog.title, "changed": sorted(changes)},
    )
    return blog


def delete_blog(s: "Session", blog: Blog, user: "User") -> None:
    """Delete a blog post."""
    record_event(
        s,
        actor=user,
        action="blog.delete",
        entity_type="Blog",
        entity_id=blog.id,
        metadata={"title": blog.title, "slug": blog.slug},
    )
    s.delete(blog)
