from __future__ import annotations

from flask import Blueprint, jsonify

from app.tourcms.db import db_session
from app.tourcms.modules.cart.service import (
    add_item,
    cart_contents,
    checkout_link,
    clear_cart,
    remove_item,
    update_quantity,
)
from app.tourcms.utils import json_body

bp = Blueprint("cart", __name__)


@bp.get("/cart")
def cart_get():
    return jsonify(cart_contents(db_session()))


@bp.post("/cart")
def cart_add():
    s = db_session()
    add_item(s, json_body())
    return jsonify(cart_contents(s)), 201


@bp.put("/cart/<item_id>")
def cart_update(item_id: str):
    s = db_session()
    update_quantity(item_id, json_body().get("quantity"))
    return jsonify(cart_contents(s))


@bp.delete("/cart/<item_id>")
def cart_remove(item_id: str):
    s = db_session()
    remove_item(item_id)
    return jsonify(cart_contents(s))


@bp.delete("/cart")
def cart_clear():
    clear_cart()
    return jsonify({"items": [], "totalItems": 0, "totalPrice": 0})


@bp.get("/cart/checkout")
def cart_checkout():
    return jsonify(checkout_link(db_session()))
