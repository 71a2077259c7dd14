from __future__ import annotations

import os

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from app.tourcms.constants import VIDEO_CONTENT_TYPES
from app.tourcms.db import db_session
from app.tourcms.errors import ApiError
from app.tourcms.modules.media.service import (
    VIDEO_PREFIX,
    delete_media,
    delete_product_image,
    get_media_or_404,
    is_safe_filename,
    list_media,
    read_upload,
    serialize_media,
    store_product_image,
    update_media,
    upload_media,
)
from app.tourcms.rbac import current_user, require_admin
from app.tourcms.storage import Storage, StorageError, storage_from_config
from app.tourcms.utils import int_arg, json_body

bp = Blueprint("media", __name__)
# Served outside /api, at the same paths the stored URLs point to.
files_bp = Blueprint("files", __name__)

LONG_CACHE = "public, max-age=31536000, immutable"


def _storage() -> Storage:
    return storage_from_config(current_app.config)


def _serve(storage: Storage, key: str, mimetype: str | None, *, cache_control: str | None = None):
    """Stream a stored object; ``Range`` requests get a 206 with ``Content-Range``."""
    try:
        if not storage.exists(key):
            raise ApiError(404, "File not found", "FILE_NOT_FOUND")
        path = storage.local_path(key)
    except StorageError:
        raise ApiError(400, "Invalid filename", "INVALID_FILENAME")

    if path is not None:
        resp = send_file(path, mimetype=mimetype, conditional=True, max_age=0)
    else:
        fobj = storage.open(key)
        try:
            data = fobj.read()
        finally:
            fobj.close()
        resp = Response(data, mimetype=mimetype or "application/octet-stream")
        resp.make_conditional(request, accept_ranges=True, complete_length=len(data))

    resp.headers["Accept-Ranges"] = "bytes"
    if cache_control and resp.status_code == 200:
        resp.headers["Cache-Control"] = cache_control
    return resp


# ---------- Product image upload ----------
@bp.post("/upload")
@require_admin
def upload_product_image():
    result = store_product_image(_storage(), read_upload(request.files.get("file")))
    return jsonify(result), 201


@bp.delete("/upload")
@require_admin
def delete_uploaded_image():
    filename = request.args.get("filename")
    delete_product_image(_storage(), filename)
    current_app.logger.info("Product image deleted by %s: %s", current_user().email, filename)
    return jsonify({"success": True, "message": "File deleted"})


# ---------- Media library ----------
@bp.post("/media/upload")
@require_admin
def media_upload():
    s = db_session()
    media = upload_media(s, _storage(), read_upload(request.files.get("file")), current_user())
    s.commit()
    return jsonify({"success": True, "media": serialize_media(media), "url": media.filepath}), 201


@bp.get("/media")
@require_admin
def media_list():
    s = db_session()
    items = list_media(
        s,
        limit=int_arg("limit", 100, maximum=500),
        search=(request.args.get("search") or "").strip() or None,
        media_type=(request.args.get("type") or "").strip() or None,
    )
    return jsonify({"media": [serialize_media(m) for m in items], "total": len(items)})


@bp.put("/media/<int:media_id>")
@require_admin
def media_update(media_id: int):
    s = db_session()
    m = get_media_or_404(s, media_id)
    update_media(s, m, json_body(), current_user())
    s.commit()
    return jsonify(serialize_media(m))


@bp.delete("/media/<int:media_id>")
@require_admin
def media_delete(media_id: int):
    s = db_session()
    m = get_media_or_404(s, media_id)
    delete_media(s, _storage(), m, current_user())
    s.commit()
    return jsonify({"success": True, "message": "Media deleted"})


# ---------- Public file serving ----------
@bp.get("/video/<filename>")
def video_stream(filename: str):
    if not is_safe_filename(filename):
        raise ApiError(400, "Invalid filename", "INVALID_FILENAME")
    ext = os.path.splitext(filename)[1].lower()
    mimetype = VIDEO_CONTENT_TYPES.get(ext, "video/mp4")
    return _serve(_storage(), f"{VIDEO_PREFIX}/{filename}", mimetype, cache_control=LONG_CACHE)


@files_bp.get("/uploads/<path:key>")
def uploaded_file(key: str):
    if ".." in key.split("/"):
        raise ApiError(400, "Invalid filename", "INVALID_FILENAME")
    stored_key = f"uploads/{key}"
    ext = os.path.splitext(key)[1].lower()
    # send_file guesses image types from the extension; videos are mapped explicitly.
    mimetype = VIDEO_CONTENT_TYPES.get(ext)
    return _serve(_storage(), stored_key, mimetype)
