"""
Order data models.

These models represent a customer's print order as it flows through the
shop: submit -> queue -> print -> complete.

Snapshots:
    UserSnapshot and MaterialSnapshot are frozen copies taken when the order
    is created. Editing or deleting a user or material later does not change
    orders that were already placed.

Thread Safety:
    - Order ids come from IdGenerator, which hands out ids under a lock
    - Order itself is mutable; the OrderManager lock guards the containers,
      not individual status/priority updates
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Any

from modules.estimator import PrintTimeEstimator


# Starting point for order ids
FIRST_ORDER_ID = 1000


class OrderStatus(Enum):
    """
    Fulfilment status of an order.

    Lifecycle:
        PENDING -> PROCESSING -> PRINTING -> (POST_PROCESSING ->) COMPLETED
    """

    PENDING = "pending"
    """Submitted, waiting in the print queue."""

    PROCESSING = "processing"
    """Picked up, being prepared (slicing, plate setup)."""

    PRINTING = "printing"
    """On the printer."""

    POST_PROCESSING = "post-processing"
    """Support removal, curing, finishing."""

    COMPLETED = "completed"
    """Ready for pickup."""

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["OrderStatus"]:
        """Lenient lookup: case-insensitive, accepts '_' or ' ' for '-'."""
        if not value:
            return None
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        for status in cls:
            if status.value == normalized:
                return status
        return None


ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PRINTING, OrderStatus.PENDING}),
    OrderStatus.PRINTING: frozenset({OrderStatus.POST_PROCESSING, OrderStatus.COMPLETED}),
    OrderStatus.POST_PROCESSING: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
}


class Priority(Enum):
    """Queue priority. Only RUSH changes the price (surcharge)."""

    NORMAL = "normal"
    RUSH = "rush"
    VIP = "vip"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Priority"]:
        if not value:
            return None
        normalized = value.strip().lower()
        for priority in cls:
            if priority.value == normalized:
                return priority
        return None


@dataclass(frozen=True)
class UserSnapshot:
    """Copy of the ordering user's details at submission time."""

    username: str
    email: str = ""
    role: str = "customer"

    @property
    def is_vip(self) -> bool:
        return (self.role or "").strip().lower() == "vip"

    def to_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "email": self.email, "role": self.role}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSnapshot":
        return cls(
            username=data.get("username", ""),
            email=data.get("email", ""),
            role=data.get("role", "customer"),
        )


@dataclass(frozen=True)
class MaterialSnapshot:
    """Copy of the material's catalog entry at submission time."""

    name: str
    cost_per_gram: float
    print_temp: int = 0
    color: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cost_per_gram": self.cost_per_gram,
            "print_temp": self.print_temp,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MaterialSnapshot":
        return cls(
            name=data.get("name", ""),
            cost_per_gram=float(data.get("cost_per_gram", 0.0)),
            print_temp=int(data.get("print_temp", 0)),
            color=data.get("color", ""),
        )


class IdGenerator:
    """
    Hands out process-unique, increasing integer ids (orders, invoices).

    Thread Safety:
        next_id() and advance_past() hold a lock, so concurrent submissions
        never receive the same id.
    """

    def __init__(self, start: int = FIRST_ORDER_ID):
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def advance_past(self, issued_id: int) -> None:
        """Make sure ids issued from now on are greater than issued_id."""
        with self._lock:
            if issued_id >= self._next:
                self._next = issued_id + 1


# Shared default generator for orders built without an explicit id
DEFAULT_ID_GENERATOR = IdGenerator()


@dataclass
class Order:
    """
    A print order.

    Lifecycle:
        1. Created by OrderService.submit_order() (or decoded from disk)
        2. Registered in the OrderManager and appended to the print queue
        3. Status/priority updated in place as the job moves through the shop

    status is kept as a string so that statuses written by the lenient
    (strict=False) mode survive a save/load cycle. Use status_enum for the
    typed view.
    """

    order_id: int
    """Unique id, never reused within a process."""

    user: Optional[UserSnapshot] = None
    """Snapshot of the customer who placed the order."""

    material: Optional[MaterialSnapshot] = None
    """Snapshot of the chosen material."""

    dimensions: str = ""
    """Free text, usually '<L>x<W>x<H><unit>'."""

    quantity: int = 0
    """Number of items to print."""

    special_instructions: str = ""
    """Customer notes; 'rush' in here requests rush priority."""

    status: str = OrderStatus.PENDING.value
    """Current status (see OrderStatus)."""

    priority: str = Priority.NORMAL.value
    """normal, rush or vip."""

    estimated_print_hours: Optional[float] = field(default=None)
    """Estimated print time recorded for the order (hours)."""

    def __post_init__(self) -> None:
        if self.estimated_print_hours is None:
            self.estimated_print_hours = PrintTimeEstimator.estimate_hours(
                self.dimensions, self.quantity
            )

    @classmethod
    def create(
        cls,
        user: Optional[UserSnapshot],
        material: Optional[MaterialSnapshot],
        dimensions: str,
        quantity: int,
        special_instructions: str = "",
        id_generator: Optional[IdGenerator] = None,
    ) -> "Order":
        """Build a new pending order with a freshly issued id."""
        generator = id_generator or DEFAULT_ID_GENERATOR
        return cls(
            order_id=generator.next_id(),
            user=user,
            material=material,
            dimensions=dimensions,
            quantity=quantity,
            special_instructions=special_instructions or "",
        )

    @property
    def status_enum(self) -> Optional[OrderStatus]:
        """Typed status, or None for statuses outside OrderStatus."""
        return OrderStatus.parse(self.status)

    @property
    def priority_enum(self) -> Priority:
        return Priority.parse(self.priority) or Priority.NORMAL

    @property
    def requests_rush(self) -> bool:
        """True when the instructions mention 'rush' (any case)."""
        return "rush" in (self.special_instructions or "").lower()

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        current = self.status_enum
        if current is None:
            # Unknown legacy status: let the order rejoin the lifecycle
            return True
        if current == new_status:
            return True
        return new_status in ALLOWED_TRANSITIONS[current]

    def update_status(self, new_status: Optional[str], strict: bool = True) -> bool:
        """
        Change the order status.

        Args:
            new_status: Requested status text
            strict: When True the value must be an OrderStatus and the move
                must be allowed by ALLOWED_TRANSITIONS. When False any
                non-empty string is accepted (legacy behaviour).

        Returns:
            True if the status was changed (or already equal), False otherwise
        """
        if new_status is None or not new_status.strip():
            return False

        if not strict:
            self.status = new_status.strip()
            return True

        target = OrderStatus.parse(new_status)
        if target is None or not self.can_transition_to(target):
            return False

        self.status = target.value
        return True

    def set_priority(self, priority: Optional[str]) -> bool:
        """Set priority to normal, rush or vip. Other values are ignored."""
        parsed = Priority.parse(priority)
        if parsed is None:
            return False
        self.priority = parsed.value
        return True

    def refresh_estimate(self) -> float:
        """Recompute estimated_print_hours from dimensions and quantity."""
        self.estimated_print_hours = PrintTimeEstimator.estimate_hours(
            self.dimensions, self.quantity
        )
        return self.estimated_print_hours

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "order_id": self.order_id,
            "user": self.user.to_dict() if self.user else None,
            "material": self.material.to_dict() if self.material else None,
            "dimensions": self.dimensions,
            "quantity": self.quantity,
            "special_instructions": self.special_instructions,
            "status": self.status,
            "priority": self.priority,
            "estimated_print_hours": self.estimated_print_hours,
        }

    def __str__(self) -> str:
        return (
            f"Order(order_id={self.order_id}, "
            f"user={self.user.username if self.user else None}, "
            f"material={self.material.name if self.material else None}, "
            f"dimensions={self.dimensions!r}, quantity={self.quantity}, "
            f"status={self.status!r}, priority={self.priority!r})"
        )
