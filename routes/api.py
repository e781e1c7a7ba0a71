"""
Service endpoints.

Handles:
- /health                   - Health check endpoint
- /api/config               - Pricing configuration (GET reads, PUT changes and saves)
- /api/config/reset         - Restore and save the default configuration
- /api/persistence/save     - Write orders.txt and order_queue.txt
- /api/persistence/load     - Replace memory with the saved state
"""

from flask import Blueprint, current_app, request
from werkzeug.exceptions import BadRequest

from logging_config import get_logger
from modules.system_config import SystemConfig


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    manager = current_app.config.get("ORDER_MANAGER")
    if manager is not None:
        health_status["checks"]["orders"] = manager.registry_size()
        health_status["checks"]["queue"] = manager.size()
    else:
        health_status["checks"]["orders"] = "not_available"
        health_status["status"] = "degraded"

    persistence = current_app.config.get("PERSISTENCE_SERVICE")
    if persistence is not None:
        health_status["checks"]["data_dir"] = str(persistence.data_dir)
    else:
        health_status["checks"]["data_dir"] = "not_configured"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


@api_bp.route("/api/config", methods=["GET"])
def show_config():
    system_config = current_app.config["SYSTEM_CONFIG"]
    return {
        "settings": system_config.snapshot().to_dict(),
        "summary": system_config.summary(),
    }


@api_bp.route("/api/config", methods=["PUT"])
def update_config():
    """
    Change pricing settings and save them to SYSTEM_CONFIG_FILE.

    Body:
        {"tax_rate": 0.2, "allow_rush_orders": false}

    All values are checked first; if any is rejected nothing changes and
    the answer is 400 with the per-key reasons. Prices read the new values
    from the next calculation on.
    """
    values = request.get_json(silent=True)
    if not isinstance(values, dict) or not values:
        raise BadRequest("Request body must be a non-empty JSON object")

    system_config = current_app.config["SYSTEM_CONFIG"]
    trial = SystemConfig(**system_config.snapshot().to_dict())
    check = trial.update(values)
    if not check.ok:
        return {"report": check.to_dict(), "settings": system_config.snapshot().to_dict()}, 400

    report = system_config.update(values)
    system_config.save_to_file(current_app.config["SYSTEM_CONFIG_FILE"])
    logger.info(f"Configuration updated over HTTP: {', '.join(report.applied)}")
    return {"report": report.to_dict(), "settings": system_config.snapshot().to_dict()}


@api_bp.route("/api/config/reset", methods=["POST"])
def reset_config():
    system_config = current_app.config["SYSTEM_CONFIG"]
    system_config.reset_to_defaults()
    system_config.save_to_file(current_app.config["SYSTEM_CONFIG_FILE"])
    return {"settings": system_config.snapshot().to_dict()}


@api_bp.route("/api/persistence/save", methods=["POST"])
def save_state():
    persistence = current_app.config["PERSISTENCE_SERVICE"]
    counts = persistence.save_all()
    return {"saved": counts, "data_dir": str(persistence.data_dir)}


@api_bp.route("/api/persistence/load", methods=["POST"])
def load_state():
    """Replace the in-memory orders and queue with the saved state."""
    persistence = current_app.config["PERSISTENCE_SERVICE"]
    reports = persistence.load_all()
    return {name: report.to_dict() for name, report in reports.items()}
