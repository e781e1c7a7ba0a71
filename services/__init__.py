"""
Services layer for the print shop order manager.

This package contains the stateful business services:
- OrderManager: Order registry and FIFO print queue (one lock)
- OrderService: Submission, pricing, status changes, invoicing
- InventoryService: Material stock in grams
- PersistenceService: orders.txt / order_queue.txt save and load
- Directory: Read-only user/material lookup for the routes

Each service is constructed explicitly in create_app() and stored in
app.config, so tests can build isolated instances.
"""

from .inventory_service import InventoryService
from .lookup import Directory
from .order_manager import OrderManager
from .order_service import OrderService
from .persistence_service import PersistenceService

__all__ = [
    "InventoryService",
    "Directory",
    "OrderManager",
    "OrderService",
    "PersistenceService",
]
