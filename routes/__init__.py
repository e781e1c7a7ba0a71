"""
Flask route blueprints for the print shop order manager.

All endpoints speak JSON:
- orders: Submission, lookup, pricing, status/priority, invoices
- queue: Print queue inspection and dequeue
- api: Health check, configuration, save/load

Each blueprint is registered with the Flask app in create_app().
"""

from .api import api_bp
from .orders import orders_bp
from .queue import queue_bp

__all__ = [
    "api_bp",
    "orders_bp",
    "queue_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(api_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(queue_bp)
