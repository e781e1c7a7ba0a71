"""
Core module for the print shop order manager.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    PrintShopError,
    InvalidOrderError,
    InvalidStatusTransitionError,
    InvalidMaterialError,
    InsufficientMaterialError,
    ConfigurationError,
    PersistenceError,
)

__all__ = [
    "PrintShopError",
    "InvalidOrderError",
    "InvalidStatusTransitionError",
    "InvalidMaterialError",
    "InsufficientMaterialError",
    "ConfigurationError",
    "PersistenceError",
]
