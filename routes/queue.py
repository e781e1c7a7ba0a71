"""
Print queue routes (JSON).

Handles:
- GET  /api/queue       - Queued order ids, head first
- POST /api/queue/next  - Take the next order off the queue
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

queue_bp = Blueprint("queue", __name__, url_prefix="/api/queue")


@queue_bp.route("", methods=["GET"])
def show_queue():
    manager = current_app.config["ORDER_MANAGER"]
    order_ids = manager.queued_ids()
    return {"size": len(order_ids), "order_ids": order_ids}


@queue_bp.route("/next", methods=["POST"])
def next_order():
    """Dequeue the head of the queue. An empty queue returns order=null."""
    service = current_app.config["ORDER_SERVICE"]
    order = service.dequeue_next()
    if order is None:
        logger.debug("Dequeue requested on an empty queue")
    return {
        "order": order.to_dict() if order else None,
        "remaining": service.queue_size(),
    }
