"""
Data models for the print shop order manager.

This module contains:
- Order: a customer's print job, with user/material snapshots
- OrderStatus / Priority: typed status and priority values
- OrderResult / RejectionReason: outcome of a submission
- LoadReport: outcome of loading saved state
- Invoice: billing record for an order

UserSnapshot and MaterialSnapshot are frozen so that an order keeps the
details it was placed with, whatever happens to the live records later.
"""

from .order import (
    ALLOWED_TRANSITIONS,
    IdGenerator,
    MaterialSnapshot,
    Order,
    OrderStatus,
    Priority,
    UserSnapshot,
)
from .order_result import LoadReport, OrderResult, RejectionReason
from .invoice import Invoice

__all__ = [
    # Order models
    "Order",
    "OrderStatus",
    "Priority",
    "UserSnapshot",
    "MaterialSnapshot",
    "IdGenerator",
    "ALLOWED_TRANSITIONS",
    # Results
    "OrderResult",
    "RejectionReason",
    "LoadReport",
    # Billing
    "Invoice",
]
