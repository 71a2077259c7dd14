from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from app.tourcms.errors import integrity_kind
from app.tourcms.storage import LocalStorage, StorageError, storage_from_config, S3Storage
from app.tourcms.utils import make_excerpt, parse_bool, parse_datetime, slugify, to_number


def test_local_storage_roundtrip(tmp_path):
    storage = LocalStorage(root=tmp_path)
    storage.put_bytes("uploads/images/a.png", b"abc")
    assert storage.exists("uploads/images/a.png")
    assert storage.size("uploads/images/a.png") == 3
    with storage.open("uploads/images/a.png") as f:
        assert f.read() == b"abc"
    storage.delete("uploads/images/a.png")
    assert not storage.exists("uploads/images/a.png")
    with pytest.raises(FileNotFoundError):
        storage.delete("uploads/images/a.png")


def test_local_storage_blocks_traversal(tmp_path):
    storage = LocalStorage(root=tmp_path / "public")
    with pytest.raises(StorageError):
        storage.exists("uploads/../../etc/passwd")


def test_storage_from_config():
    assert isinstance(storage_from_config({"STORAGE_BACKEND": "local", "UPLOAD_ROOT": "/tmp/x"}), LocalStorage)
    s3 = storage_from_config({"STORAGE_BACKEND": "s3", "S3_BUCKET": " media "})
    assert isinstance(s3, S3Storage)
    assert s3.bucket == "media"


def test_slugify_and_excerpt():
    assert slugify("Paket Umroh  Ramadhan 2026!") == "paket-umroh-ramadhan-2026"
    assert slugify(None) == ""
    assert make_excerpt("<b>Labbaik</b>", 160) == "Labbaik..."


def test_to_number():
    assert to_number("12.5") == 12.5
    assert to_number("abc", None) is None
    assert to_number(float("nan"), 0.0) == 0.0
    assert to_number(True, None) is None


def test_parse_bool_and_datetime():
    assert parse_bool("true") is True
    assert parse_bool("off") is False
    assert parse_bool("maybe", None) is None
    assert parse_datetime("2026-12-01") == datetime(2026, 12, 1)
    assert parse_datetime("2026-12-01T03:00:00Z") == datetime(2026, 12, 1, 3, 0)
    assert parse_datetime("") is None
    with pytest.raises(ValueError):
        parse_datetime("soon")


@pytest.mark.parametrize(
    "message, kind",
    [
        ("UNIQUE constraint failed: blogs.slug", "unique"),
        ('duplicate key value violates unique constraint "uq_products_slug"', "unique"),
        ("FOREIGN KEY constraint failed", "foreign_key"),
        ('insert or update on table "hero_buttons" violates foreign key constraint', "foreign_key"),
        ("NOT NULL constraint failed: blogs.slug", "constraint"),
        ('null value in column "slug" of relation "blogs" violates not-null constraint', "constraint"),
        ("CHECK constraint failed: rating", "constraint"),
    ],
)
def test_integrity_kind(message, kind):
    exc = IntegrityError("INSERT ...", {}, Exception(message))
    assert integrity_kind(exc) == kind
