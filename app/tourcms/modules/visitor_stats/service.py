from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.tourcms.constants import PAGE_TYPE_PRODUCT
from app.tourcms.db import upsert_insert
from app.tourcms.modules.visitor_stats.models import VisitorStat

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

COUNTERS = ("pageViews", "uniqueVisitors", "productViews")


def record_visit(s: "Session", *, page_type: str | None, unique: bool, day: date | None = None) -> None:
    """
    Bump today's counters in one ``INSERT ... ON CONFLICT (date) DO UPDATE``,
    so concurrent first hits of the day cannot race each other.
    """
    day = day or date.today()
    now = datetime.utcnow()
    is_product = page_type == PAGE_TYPE_PRODUCT
    table = VisitorStat.__table__

    stmt = upsert_insert(s, table).values(
        date=day,
        page_views=1,
        unique_visitors=1 if unique else 0,
        product_views=1 if is_product else 0,
        created_at=now,
        updated_at=now,
    )
    set_: dict[str, Any] = {"page_views": table.c.page_views + 1, "updated_at": now}
    if unique:
        set_["unique_visitors"] = table.c.unique_visitors + 1
    if is_product:
        set_["product_views"] = table.c.product_views + 1
    s.execute(stmt.on_conflict_do_update(index_elements=["date"], set_=set_))


def _counts(row: VisitorStat | None) -> dict[str, int]:
    if row is None:
        return {k: 0 for k in COUNTERS}
    return {
        "pageViews": row.page_views or 0,
        "uniqueVisitors": row.unique_visitors or 0,
        "productViews": row.product_views or 0,
    }


def growth_percent(today: int, yesterday: int) -> float:
    if yesterday == 0:
        return 100 if today > 0 else 0
    return ((today - yesterday) / yesterday) * 100


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def visitor_summary(s: "Session", *, days: int = 30, today: date | None = None) -> dict[str, Any]:
    today = today or date.today()
    yesterday = today - timedelta(days=1)
    start = today - timedelta(days=days)

    rows = (
        s.query(VisitorStat)
        .filter(VisitorStat.date >= start, VisitorStat.date <= today)
        .order_by(VisitorStat.date.asc())
        .all()
    )
    by_day = {r.date: r for r in rows}
    today_counts = _counts(by_day.get(today))
    yesterday_counts = _counts(by_day.get(yesterday))

    totals = {k: 0 for k in COUNTERS}
    for r in rows:
        for k, v in _counts(r).items():
            totals[k] += v
    n_days = max(len(rows), 1)

    return {
        "today": today_counts,
        "yesterday": yesterday_counts,
        "growth": {k: growth_percent(today_counts[k], yesterday_counts[k]) for k in COUNTERS},
        "totals": {
            **totals,
            "averagePerDay": {k: _round_half_up(totals[k] / n_days) for k in COUNTERS},
        },
        "chartData": [{"date": r.date.isoformat(), **_counts(r)} for r in rows],
    }
