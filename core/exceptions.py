"""
Custom exceptions for the print shop order manager.

Exception Hierarchy:
    PrintShopError (base)
    ├── InvalidOrderError            - Order data cannot be processed
    │   └── InvalidStatusTransitionError - Status change not in the table
    ├── InvalidMaterialError         - Material snapshot is unusable
    ├── InsufficientMaterialError    - Not enough stock for an order
    ├── ConfigurationError           - Bad system configuration value/file
    └── PersistenceError             - Orders/queue file cannot be read/written

Usage:
    Order submission does NOT raise for validation failures; it returns an
    OrderResult carrying the rejection reason. These exceptions are for
    callers that prefer raising (OrderResult.unwrap()) and for I/O failures.
"""

from typing import Optional, Dict, Any


class PrintShopError(Exception):
    """
    Base exception for all print shop errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# ORDER ERRORS
# =============================================================================

class InvalidOrderError(PrintShopError):
    """
    An order was rejected or cannot be processed.

    Carries the rejection reason code (see models.order_result.RejectionReason)
    when raised from OrderResult.unwrap().
    """

    def __init__(
        self,
        message: str = "Invalid order",
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if reason:
            error_details["reason"] = reason
        super().__init__(message, error_details)
        self.reason = reason


class InvalidStatusTransitionError(InvalidOrderError):
    """
    A status change is not allowed by the transition table.

    Example: completed -> printing.
    """

    def __init__(self, order_id: int, current: str, requested: str):
        message = (
            f"Order {order_id}: cannot move from '{current}' to '{requested}'"
        )
        details = {
            "order_id": order_id,
            "current": current,
            "requested": requested,
        }
        super().__init__(message, reason="invalid_status_transition", details=details)
        self.order_id = order_id
        self.current = current
        self.requested = requested


class InvalidMaterialError(PrintShopError):
    """The material snapshot is missing or has unusable values."""

    def __init__(self, message: str = "Invalid material", material_name: Optional[str] = None):
        details = {"material": material_name} if material_name else {}
        super().__init__(message, details)
        self.material_name = material_name


class InsufficientMaterialError(PrintShopError):
    """
    Not enough material in stock to fulfil an order.

    The user should reduce the quantity or wait for a restock.
    """

    def __init__(self, material_name: str, required: int, available: int):
        message = (
            f"Insufficient material: {material_name}. "
            f"Required: {required}g, Available: {available}g"
        )
        details = {
            "material": material_name,
            "required": required,
            "available": available,
            "resolution": "Reduce the order quantity or restock the material",
        }
        super().__init__(message, details)
        self.material_name = material_name
        self.required = required
        self.available = available


# =============================================================================
# CONFIGURATION / PERSISTENCE ERRORS
# =============================================================================

class ConfigurationError(PrintShopError):
    """A configuration key or value was rejected."""

    def __init__(self, key: str, value: Any, reason: str):
        message = f"Invalid configuration {key}={value!r}: {reason}"
        super().__init__(message, {"key": key, "value": value})
        self.key = key
        self.value = value
        self.reason = reason


class PersistenceError(PrintShopError):
    """
    Orders or queue file could not be read or written.

    Per-line parse problems are NOT raised; they are counted in a LoadReport.
    This is for whole-file failures (permissions, disk full, bad encoding).
    """

    def __init__(self, message: str, path: Optional[str] = None):
        details = {"path": path} if path else {}
        super().__init__(message, details)
        self.path = path
