"""
Print Shop Order Manager - Flask Application Entry Point.

This is a slim app factory that:
1. Configures logging
2. Loads pricing settings from system_config.txt
3. Builds the services (order manager, inventory, orders, persistence)
4. Restores saved orders and queue (optional)
5. Registers route blueprints and JSON error handlers

ARCHITECTURE:
    Flask request threads
    └── OrderService
        ├── OrderManager (registry + FIFO queue, one lock)
        ├── SystemConfig (read fresh on every price)
        └── InventoryService (stock, one lock)

    PersistenceService
    └── snapshot under the lock, write files without it

All services live in app.config so routes and tests can reach them.
"""

from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.exceptions import PersistenceError, PrintShopError
from models.invoice import new_invoice_id_generator
from models.order import IdGenerator
from modules.system_config import SystemConfig
from services.inventory_service import InventoryService
from services.lookup import default_directory
from services.order_manager import OrderManager
from services.order_service import OrderService
from services.persistence_service import PersistenceService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def create_app(
    config_object: str = "config.Config",
    config_overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the Config class to use
        config_overrides: Extra settings applied after the Config class
            (tests use this for DATA_DIR)

    Returns:
        Configured Flask application

    Raises:
        PersistenceError: Saved state exists but cannot be read
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = (
        app.config.get("ENVIRONMENT") == "production" and not app.config.get("TESTING")
    )

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting print shop order manager in {app.config.get('ENVIRONMENT')} mode")

    data_dir = Path(app.config["DATA_DIR"])
    data_dir.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # SYSTEM CONFIGURATION
    # =========================================================================

    system_config = SystemConfig()
    system_config.load_from_file(app.config["SYSTEM_CONFIG_FILE"])
    app.config["SYSTEM_CONFIG"] = system_config

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    order_manager = OrderManager()
    id_generator = IdGenerator()
    inventory_service = InventoryService(app.config.get("INITIAL_STOCK"))

    order_service = OrderService(
        order_manager,
        system_config,
        inventory=inventory_service,
        id_generator=id_generator,
        invoice_id_generator=new_invoice_id_generator(),
    )
    persistence_service = PersistenceService(
        order_manager,
        data_dir,
        format_version=app.config.get("ORDER_FORMAT_VERSION", 1),
        id_generator=id_generator,
    )

    app.config["ORDER_MANAGER"] = order_manager
    app.config["INVENTORY_SERVICE"] = inventory_service
    app.config["ORDER_SERVICE"] = order_service
    app.config["PERSISTENCE_SERVICE"] = persistence_service
    app.config.setdefault("DIRECTORY", default_directory())

    if app.config.get("LOAD_ON_STARTUP"):
        try:
            reports = persistence_service.load_all()
        except PersistenceError as e:
            logger.error(f"FATAL: Cannot restore saved orders - {e}")
            raise
        logger.info(
            f"Restored {reports['orders'].loaded} orders and "
            f"{reports['queue'].loaded} queue entries"
        )

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Save state on application shutdown."""
        logger.info("Shutting down...")
        try:
            persistence_service.save_all()
        except PersistenceError as e:
            logger.error(f"Could not save state on shutdown: {e}")
        logger.info("Shutdown complete")

    if app.config.get("PERSIST_ON_SHUTDOWN"):
        atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.name, "message": e.description}, e.code

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e):
        logger.error(f"Persistence failure: {e}")
        return {"error": "Persistence Error", "message": e.message, "details": e.details}, 500

    @app.errorhandler(PrintShopError)
    def handle_print_shop_error(e):
        return {"error": type(e).__name__, "message": e.message, "details": e.details}, 400

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "Internal Server Error", "message": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
