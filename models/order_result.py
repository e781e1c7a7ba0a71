"""
Result models for order submission and state loading.

Submission never raises for bad input. It returns an OrderResult that is
either accepted (with the Order) or rejected (with a reason code), so the
caller can tell "out of stock" apart from "bad dimensions" or "quantity
limit exceeded".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.exceptions import (
    InsufficientMaterialError,
    InvalidMaterialError,
    InvalidOrderError,
    PrintShopError,
)
from models.order import Order


class RejectionReason(Enum):
    """Why a submission was refused."""

    MISSING_USER = "missing_user"
    MISSING_MATERIAL = "missing_material"
    INVALID_DIMENSIONS = "invalid_dimensions"
    INVALID_QUANTITY = "invalid_quantity"
    QUANTITY_LIMIT_EXCEEDED = "quantity_limit_exceeded"
    INSTRUCTIONS_TOO_LONG = "instructions_too_long"
    ORDER_VALUE_EXCEEDED = "order_value_exceeded"
    INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True)
class OrderResult:
    """
    Outcome of OrderService.submit_order().

    Exactly one of ``order`` / ``reason`` is set.

    Usage:
        result = service.submit_order(user, material, "10x10x10cm", 2, "")
        if result.accepted:
            print(result.order.order_id)
        else:
            print(result.reason.value, result.message)
    """

    order: Optional[Order] = None
    reason: Optional[RejectionReason] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, order: Order) -> "OrderResult":
        return cls(order=order, message=f"Order {order.order_id} accepted")

    @classmethod
    def rejected(
        cls,
        reason: RejectionReason,
        message: str,
        **details: Any
    ) -> "OrderResult":
        return cls(reason=reason, message=message, details=dict(details))

    @property
    def accepted(self) -> bool:
        return self.order is not None

    def unwrap(self) -> Order:
        """
        Return the order or raise the matching exception.

        Raises:
            InvalidMaterialError: Material was missing
            InsufficientMaterialError: Not enough stock
            InvalidOrderError: Any other rejection
        """
        if self.order is not None:
            return self.order
        raise self.to_exception()

    def to_exception(self) -> PrintShopError:
        if self.reason is RejectionReason.MISSING_MATERIAL:
            return InvalidMaterialError(self.message)
        if self.reason is RejectionReason.INSUFFICIENT_STOCK:
            return InsufficientMaterialError(
                self.details.get("material", ""),
                self.details.get("required", 0),
                self.details.get("available", 0),
            )
        reason = self.reason.value if self.reason else None
        return InvalidOrderError(self.message, reason=reason, details=dict(self.details))

    def to_dict(self) -> Dict[str, Any]:
        if self.order is not None:
            return {"accepted": True, "order": self.order.to_dict(), "message": self.message}
        return {
            "accepted": False,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass
class LoadReport:
    """
    Outcome of loading orders or the queue from disk.

    Malformed lines are skipped, not fatal: ``skipped`` counts them and
    ``errors`` holds one message per skipped line.
    """

    loaded: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.errors.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"loaded": self.loaded, "skipped": self.skipped, "errors": list(self.errors)}
