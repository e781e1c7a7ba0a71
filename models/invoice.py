"""
Invoice model.

An invoice freezes the price of an order at the moment it is issued. The
price itself comes from the pricing engine (OrderService.create_invoice);
the invoice only records it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from models.order import IdGenerator, Order


FIRST_INVOICE_ID = 2000


@dataclass
class Invoice:
    """Billing record for one order."""

    invoice_id: int
    order: Order
    total_cost: float
    currency: str = "USD"
    date_issued: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> str:
        """One-line summary for listings and logs."""
        customer = self.order.user.username if self.order.user else "Unknown"
        material = self.order.material.name if self.order.material else "Unknown"
        issued = self.date_issued.strftime("%Y-%m-%d %H:%M:%S")
        return (
            f"Invoice #{self.invoice_id} | Issued {issued} | Order #{self.order.order_id} | "
            f"Customer: {customer} | Material: {material} | "
            f"Quantity: {self.order.quantity} | "
            f"Total: {self.total_cost:.2f} {self.currency} | Status: {self.order.status}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invoice_id": self.invoice_id,
            "order_id": self.order.order_id,
            "total_cost": round(self.total_cost, 2),
            "currency": self.currency,
            "date_issued": self.date_issued.isoformat(),
            "summary": self.summary(),
        }


def new_invoice_id_generator() -> IdGenerator:
    return IdGenerator(start=FIRST_INVOICE_ID)
