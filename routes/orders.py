"""
Order routes (JSON).

Handles:
- GET  /api/orders                  - List orders (optional ?status=)
- POST /api/orders                  - Submit a new order
- GET  /api/orders/<id>             - One order
- GET  /api/orders/<id>/price       - Current price with breakdown
- POST /api/orders/<id>/status      - Change status
- POST /api/orders/<id>/priority    - Change priority
- POST /api/orders/<id>/invoice     - Issue an invoice

A rejected submission answers 422 with the rejection reason, so the client
can tell "out of stock" from "bad dimensions".
"""

import html

import bleach
from flask import Blueprint, current_app, request
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from core.exceptions import InvalidStatusTransitionError
from logging_config import get_logger
from modules.pricing import format_money


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _sanitize_text(text) -> str:
    """
    Sanitize user input text (HTML stripped, no truncation).

    bleach escapes &, < and > as entities; the text is stored and written
    to order files, not rendered, so the entities are turned back into
    plain characters.
    """
    if not text:
        return ""
    text = str(text).strip()
    return html.unescape(bleach.clean(text, tags=[], strip=True))


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def _order_service():
    return current_app.config["ORDER_SERVICE"]


def _get_order_or_404(order_id: int):
    order = _order_service().get_order(order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")
    return order


@orders_bp.route("", methods=["GET"])
def list_orders():
    orders = sorted(_order_service().get_all_orders(), key=lambda o: o.order_id)

    status_filter = request.args.get("status")
    if status_filter:
        wanted = status_filter.strip().lower()
        orders = [o for o in orders if (o.status or "").lower() == wanted]

    return {"orders": [o.to_dict() for o in orders], "count": len(orders)}


@orders_bp.route("", methods=["POST"])
def submit_order():
    """
    Submit an order.

    Body:
        {"username": "...", "material": "PLA", "dimensions": "10x10x10cm",
         "quantity": 2, "special_instructions": "..."}
    """
    data = _json_body()
    directory = current_app.config["DIRECTORY"]

    quantity = data.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, (int, str)):
        raise BadRequest("quantity must be an integer")
    try:
        quantity = int(quantity)
    except ValueError:
        raise BadRequest("quantity must be an integer") from None

    user = directory.find_user(_sanitize_text(data.get("username")))
    material = directory.find_material(_sanitize_text(data.get("material")))

    result = _order_service().submit_order(
        user=user,
        material=material,
        dimensions=_sanitize_text(data.get("dimensions")),
        quantity=quantity,
        special_instructions=_sanitize_text(data.get("special_instructions")),
    )

    if not result.accepted:
        return result.to_dict(), 422

    order = result.order
    price = _order_service().calculate_price(order.order_id)
    body = result.to_dict()
    body["price"] = price
    body["price_display"] = format_money(price, current_app.config["SYSTEM_CONFIG"].currency)
    return body, 201


@orders_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id: int):
    return _get_order_or_404(order_id).to_dict()


@orders_bp.route("/<int:order_id>/price", methods=["GET"])
def get_price(order_id: int):
    _get_order_or_404(order_id)
    breakdown = _order_service().price_breakdown(order_id)
    return {
        "order_id": order_id,
        "price": breakdown.total,
        "price_display": format_money(breakdown.total, breakdown.currency),
        "breakdown": breakdown.to_dict(),
    }


@orders_bp.route("/<int:order_id>/status", methods=["POST"])
def update_status(order_id: int):
    """
    Change status.

    Body:
        {"status": "processing", "strict": true}

    strict=false accepts any status text (legacy behaviour).
    """
    data = _json_body()
    order = _get_order_or_404(order_id)

    status = data.get("status")
    if not isinstance(status, str) or not status.strip():
        raise BadRequest("status is required")
    strict = data.get("strict", True) is not False

    current = order.status
    if not _order_service().update_status(order_id, status, strict=strict):
        error = InvalidStatusTransitionError(order_id, current, status)
        logger.info(f"Refused status change: {error.message}")
        raise Conflict(error.message)

    return order.to_dict()


@orders_bp.route("/<int:order_id>/priority", methods=["POST"])
def set_priority(order_id: int):
    data = _json_body()
    order = _get_order_or_404(order_id)

    priority = data.get("priority")
    if not isinstance(priority, str) or not _order_service().set_priority(order_id, priority):
        raise BadRequest("priority must be one of: normal, rush, vip")

    return order.to_dict()


@orders_bp.route("/<int:order_id>/invoice", methods=["POST"])
def create_invoice(order_id: int):
    _get_order_or_404(order_id)
    invoice = _order_service().create_invoice(order_id)
    return invoice.to_dict(), 201
