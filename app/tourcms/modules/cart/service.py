from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from flask import session

from app.tourcms.constants import DEFAULT_WHATSAPP_NUMBER
from app.tourcms.errors import ApiError, not_found
from app.tourcms.modules.catalog.models import Product
from app.tourcms.modules.catalog.service import serialize_product, unit_price
from app.tourcms.modules.site_settings.service import get_value

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

SESSION_KEY = "cart"

_MONTHS_ID = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)
_RULE = "━━━━━━━━━━━━━━━━━━━━"


def _lines() -> list[dict[str, Any]]:
    raw = session.get(SESSION_KEY)
    if not isinstance(raw, list):
        return []
    lines = []
    for it in raw:
        if not isinstance(it, dict):
            continue
        try:
            qty = int(it.get("quantity") or 0)
            pid = int(it.get("productId"))
        except (TypeError, ValueError):
            continue
        item_id = str(it.get("id") or f"{pid}-{int(time.time() * 1000)}")
        lines.append({"id": item_id, "productId": pid, "quantity": max(qty, 1)})
    return lines


def _save(lines: list[dict[str, Any]]) -> None:
    session[SESSION_KEY] = lines
    session.modified = True


def _active_product(s: "Session", product_id: Any) -> Product:
    try:
        pid = int(product_id)
    except (TypeError, ValueError):
        raise ApiError(400, "productId is required", "VALIDATION_ERROR")
    p = s.get(Product, pid)
    if not p or not p.is_active:
        raise not_found("Product")
    return p


def _quantity(raw: Any, default: int | None = None) -> int:
    if raw is None and default is not None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ApiError(400, "Quantity must be a whole number", "VALIDATION_ERROR")


def cart_contents(s: "Session") -> dict[str, Any]:
    """Lines priced against the current catalog; lines for gone or hidden products are dropped."""
    items = []
    total_items = 0
    total_price = 0.0
    kept = []
    lines = _lines()
    for line in lines:
        p = s.get(Product, line["productId"])
        if not p or not p.is_active:
            continue
        kept.append(line)
        price = unit_price(p)
        items.append({**line, "product": serialize_product(p), "unitPrice": price, "subtotal": price * line["quantity"]})
        total_items += line["quantity"]
        total_price += price * line["quantity"]
    if len(kept) != len(lines):
        _save(kept)
    return {"items": items, "totalItems": total_items, "totalPrice": total_price}


def add_item(s: "Session", payload: dict) -> None:
    product = _active_product(s, payload.get("productId"))
    quantity = _quantity(payload.get("quantity"), default=1)
    if quantity <= 0:
        raise ApiError(400, "Quantity must be at least 1", "VALIDATION_ERROR")
    lines = _lines()
    for line in lines:
        if line["productId"] == product.id:
            line["quantity"] += quantity
            break
    else:
        lines.append(
            {"id": f"{product.id}-{int(time.time() * 1000)}", "productId": product.id, "quantity": quantity}
        )
    _save(lines)


def update_quantity(item_id: str, raw_quantity: Any) -> None:
    quantity = _quantity(raw_quantity)
    lines = _lines()
    if not any(line["id"] == item_id for line in lines):
        raise not_found("Cart item")
    if quantity <= 0:
        lines = [line for line in lines if line["id"] != item_id]
    else:
        for line in lines:
            if line["id"] == item_id:
                line["quantity"] = quantity
    _save(lines)


def remove_item(item_id: str) -> None:
    lines = _lines()
    kept = [line for line in lines if line["id"] != item_id]
    if len(kept) == len(lines):
        raise not_found("Cart item")
    _save(kept)


def clear_cart() -> None:
    session.pop(SESSION_KEY, None)


# ---------- WhatsApp checkout ----------
def format_idr(amount: float) -> str:
    """Rupiah with dot thousands separators and no decimals, e.g. ``Rp 35.000.000``."""
    return "Rp " + f"{int(round(amount)):,}".replace(",", ".")


def format_date_id(value: datetime | None) -> str:
    if value is None:
        return "-"
    return f"{value.day} {_MONTHS_ID[value.month - 1]} {value.year}"


def order_message(s: "Session", cart: dict[str, Any]) -> str:
    parts = [
        "🕌 *PEMESANAN TOUR HAJI & UMROH*",
        _RULE,
        "",
        "📋 *Detail Pesanan:*",
        "",
    ]
    for n, item in enumerate(cart["items"], start=1):
        product = s.get(Product, item["productId"])
        price = item["unitPrice"]
        parts += [
            f"{n}. *{product.name}*",
            f"   📅 {product.duration}",
            f"   🛫 Keberangkatan: {format_date_id(product.departure)}",
            f"   👥 Jumlah Jamaah: {item['quantity']} orang",
            f"   💰 Harga: {format_idr(price)}/orang",
            f"   💵 Subtotal: {format_idr(price * item['quantity'])}",
            "",
        ]
    parts += [
        _RULE,
        f"💰 *TOTAL PEMBAYARAN: {format_idr(cart['totalPrice'])}*",
        _RULE,
        "",
        "📞 Mohon informasi lebih lanjut mengenai:",
        "• Ketersediaan paket",
        "• Cara pembayaran",
        "• Syarat dan ketentuan",
        "",
        "Terima kasih! 🙏",
    ]
    return "\n".join(parts)


def checkout_link(s: "Session") -> dict[str, Any]:
    cart = cart_contents(s)
    if not cart["items"]:
        raise ApiError(400, "Cart is empty", "CART_EMPTY")
    number = get_value(s, "whatsapp_number", DEFAULT_WHATSAPP_NUMBER)
    message = order_message(s, cart)
    return {
        "url": f"https://wa.me/{number}?text={quote(message, safe='')}",
        "message": message,
        "totalItems": cart["totalItems"],
        "totalPrice": cart["totalPrice"],
    }
