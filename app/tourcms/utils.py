from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from flask import request

from app.tourcms.errors import ApiError

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_TAG_RE = re.compile(r"<[^>]*>")


def json_body() -> dict[str, Any]:
    """Parsed JSON object from the request; empty body reads as {}."""
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ApiError(400, "Invalid JSON", "INVALID_JSON")
        return {}
    if not isinstance(data, dict):
        raise ApiError(400, "JSON body must be an object", "INVALID_JSON")
    return data


def to_number(value: Any, fallback: float | None = 0.0) -> float | None:
    """Coerce numbers, numeric strings and Decimals; non-finite or junk gives ``fallback``."""
    if value is None or value == "" or isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float, Decimal)):
        n = float(value)
    elif isinstance(value, str):
        try:
            n = float(value.strip())
        except ValueError:
            return fallback
    else:
        return fallback
    return n if math.isfinite(n) else fallback


def to_int(value: Any, fallback: int | None = 0) -> int | None:
    n = to_number(value, None)
    if n is None:
        return fallback
    return int(n)


def parse_bool(value: Any, default: bool | None = None) -> bool | None:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    s = str(value).strip().lower()
    if s in ("true", "1", "yes", "on"):
        return True
    if s in ("false", "0", "no", "off"):
        return False
    return default


def parse_datetime(value: Any) -> datetime | None:
    """Accept YYYY-MM-DD or ISO-8601 datetimes (trailing Z allowed). Raises ValueError."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def slugify(text: str | None) -> str:
    return _SLUG_STRIP.sub("-", (text or "").lower()).strip("-")


def strip_tags(html: str | None) -> str:
    return _TAG_RE.sub("", html or "")


def make_excerpt(content: str | None, length: int = 160) -> str:
    return strip_tags(content)[:length] + "..."


def clean_str(value: Any) -> str | None:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def int_arg(name: str, default: int, *, minimum: int = 1, maximum: int = 1000) -> int:
    raw = request.args.get(name)
    try:
        n = int(raw) if raw not in (None, "") else default
    except ValueError:
        n = default
    return max(minimum, min(n, maximum))


def apply_fields(obj: Any, data: dict[str, Any], fields: dict[str, str]) -> dict[str, Any]:
    """
    Copy keys present in ``data`` onto ``obj`` (camelCase key -> attribute name).
    Returns {attr: {"old", "new"}} for the audit trail.
    """
    changes: dict[str, Any] = {}
    for key, attr in fields.items():
        if key not in data:
            continue
        new = data[key]
        old = getattr(obj, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(obj, attr, new)
    return changes
