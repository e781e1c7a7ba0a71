"""
Order submission and fulfilment service.

This is the entry point the HTTP routes (or any other front end) use.
It ties together:
    - OrderManager      registry + print queue
    - SystemConfig      pricing constants and order limits, read fresh
    - InventoryService  material stock
    - IdGenerator       order and invoice ids

Submission:
    submit_order() never raises for bad input. Every refusal comes back as
    a rejected OrderResult with a RejectionReason, checked in this order:

        1. missing user
        2. missing material
        3. dimensions blank or longer than MAX_DIMENSIONS_LENGTH
        4. quantity <= 0
        5. quantity above max_order_quantity
        6. instructions longer than MAX_INSTRUCTIONS_LENGTH
        7. price above max_order_value
        8. not enough stock (quantity x GRAMS_PER_ITEM grams)

    On acceptance the order gets an id, its priority is derived from the
    instructions, it is registered and queued, and the stock is consumed.

Thread Safety:
    - Ids come from lock-guarded IdGenerators
    - Stock is checked and consumed atomically by InventoryService
    - Registry/queue access goes through the OrderManager lock

Usage:
    service = OrderService(OrderManager(), SystemConfig(), InventoryService())

    result = service.submit_order(user, material, "10x10x10cm", 2, "RUSH please")
    if result.accepted:
        price = service.calculate_price(result.order.order_id)
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from logging_config import get_logger, get_order_logger
from models.invoice import Invoice, new_invoice_id_generator
from models.order import IdGenerator, MaterialSnapshot, Order, Priority, UserSnapshot
from models.order_result import OrderResult, RejectionReason
from modules.pricing import GRAMS_PER_ITEM, PriceBreakdown, PricingEngine
from modules.system_config import SystemConfig
from services.inventory_service import InventoryService
from services.order_manager import OrderManager


logger = get_logger(__name__)

MAX_DIMENSIONS_LENGTH = 200
MAX_INSTRUCTIONS_LENGTH = 1000


class OrderService:
    """
    Business operations on orders.

    Attributes:
        manager: OrderManager holding the registry and the queue
        config: SystemConfig consulted on every price calculation
        inventory: InventoryService providing material stock
    """

    def __init__(
        self,
        manager: OrderManager,
        config: SystemConfig,
        inventory: Optional[InventoryService] = None,
        id_generator: Optional[IdGenerator] = None,
        invoice_id_generator: Optional[IdGenerator] = None,
    ):
        self.manager = manager
        self.config = config
        self.inventory = inventory or InventoryService()
        self.id_generator = id_generator or IdGenerator()
        self.invoice_id_generator = invoice_id_generator or new_invoice_id_generator()

        self._invoices: Dict[int, Invoice] = {}
        self._invoices_lock = threading.Lock()

        logger.info("OrderService initialized")

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit_order(
        self,
        user: Optional[UserSnapshot],
        material: Optional[MaterialSnapshot],
        dimensions: Optional[str],
        quantity: int,
        special_instructions: Optional[str] = "",
    ) -> OrderResult:
        """
        Validate, price and accept a new order.

        Args:
            user: Snapshot of the customer placing the order
            material: Snapshot of the chosen material
            dimensions: Free text such as "10x10x10cm"
            quantity: Number of items
            special_instructions: Customer notes ("rush" requests rush priority)

        Returns:
            OrderResult, accepted with the new Order or rejected with a reason
        """
        instructions = special_instructions or ""
        settings = self.config.snapshot()

        if user is None:
            return self._reject(RejectionReason.MISSING_USER, "A user is required")

        if material is None:
            return self._reject(RejectionReason.MISSING_MATERIAL, "A material is required")

        if dimensions is None or not dimensions.strip():
            return self._reject(RejectionReason.INVALID_DIMENSIONS, "Dimensions are required")
        if len(dimensions) > MAX_DIMENSIONS_LENGTH:
            return self._reject(
                RejectionReason.INVALID_DIMENSIONS,
                f"Dimensions must be at most {MAX_DIMENSIONS_LENGTH} characters",
                length=len(dimensions),
            )

        if quantity <= 0:
            return self._reject(
                RejectionReason.INVALID_QUANTITY,
                "Quantity must be greater than zero",
                quantity=quantity,
            )

        if quantity > settings.max_order_quantity:
            return self._reject(
                RejectionReason.QUANTITY_LIMIT_EXCEEDED,
                f"Quantity {quantity} exceeds the maximum of {settings.max_order_quantity}",
                quantity=quantity,
                limit=settings.max_order_quantity,
            )

        if len(instructions) > MAX_INSTRUCTIONS_LENGTH:
            return self._reject(
                RejectionReason.INSTRUCTIONS_TOO_LONG,
                f"Special instructions must be at most {MAX_INSTRUCTIONS_LENGTH} characters",
                length=len(instructions),
            )

        # Quote with a placeholder id; a real id is only issued on acceptance
        order = Order(
            order_id=0,
            user=user,
            material=material,
            dimensions=dimensions,
            quantity=quantity,
            special_instructions=instructions,
        )
        if order.requests_rush and settings.allow_rush_orders:
            order.set_priority(Priority.RUSH.value)
        else:
            order.set_priority(Priority.NORMAL.value)

        price = PricingEngine.calculate_price(order, settings)
        if price > settings.max_order_value:
            return self._reject(
                RejectionReason.ORDER_VALUE_EXCEEDED,
                f"Order value {price:.2f} exceeds the maximum of {settings.max_order_value:.2f}",
                price=price,
                limit=settings.max_order_value,
            )

        required = quantity * GRAMS_PER_ITEM
        if not self.inventory.consume(material.name, required):
            return self._reject(
                RejectionReason.INSUFFICIENT_STOCK,
                f"Insufficient stock of {material.name}",
                material=material.name,
                required=required,
                available=self.inventory.get_stock(material.name),
            )

        order.order_id = self.id_generator.next_id()
        self.manager.register(order)
        self.manager.enqueue(order)

        order_logger = get_order_logger(order.order_id)
        order_logger.info(
            f"Accepted: user={user.username} material={material.name} "
            f"quantity={quantity} priority={order.priority} price={price:.2f}"
        )
        return OrderResult.ok(order)

    def _reject(self, reason: RejectionReason, message: str, **details) -> OrderResult:
        logger.info(f"Order rejected ({reason.value}): {message}")
        return OrderResult.rejected(reason, message, **details)

    # =========================================================================
    # PRICING / INVOICING
    # =========================================================================

    def calculate_price(self, order_id: int) -> Optional[float]:
        """Current price of a registered order, or None if it does not exist."""
        order = self.manager.get_by_id(order_id)
        if order is None:
            return None
        return PricingEngine.calculate_price(order, self.config)

    def price_breakdown(self, order_id: int) -> Optional[PriceBreakdown]:
        order = self.manager.get_by_id(order_id)
        if order is None:
            return None
        return PricingEngine.price_breakdown(order, self.config)

    def create_invoice(self, order_id: int) -> Optional[Invoice]:
        """
        Issue an invoice at today's price.

        The total is recomputed now, so a configuration change since
        submission shows up on the invoice.
        """
        order = self.manager.get_by_id(order_id)
        if order is None:
            return None

        settings = self.config.snapshot()
        invoice = Invoice(
            invoice_id=self.invoice_id_generator.next_id(),
            order=order,
            total_cost=PricingEngine.calculate_price(order, settings),
            currency=settings.currency,
        )
        with self._invoices_lock:
            self._invoices[invoice.invoice_id] = invoice

        get_order_logger(order_id).info(
            f"Invoice {invoice.invoice_id} issued for {invoice.total_cost:.2f} {invoice.currency}"
        )
        return invoice

    def get_invoices(self) -> List[Invoice]:
        with self._invoices_lock:
            return list(self._invoices.values())

    # =========================================================================
    # LOOKUP / LIFECYCLE
    # =========================================================================

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.manager.get_by_id(order_id)

    def get_all_orders(self) -> List[Order]:
        return self.manager.get_all()

    def update_status(self, order_id: int, status: str, strict: bool = True) -> bool:
        """
        Move an order to a new status.

        Returns:
            False if the order does not exist or the change was refused
        """
        order = self.manager.get_by_id(order_id)
        if order is None:
            logger.warning(f"Status update for unknown order {order_id}")
            return False

        previous = order.status
        if not order.update_status(status, strict=strict):
            get_order_logger(order_id).warning(
                f"Status change refused: {previous!r} -> {status!r}"
            )
            return False

        get_order_logger(order_id).info(f"Status {previous} -> {order.status}")
        return True

    def set_priority(self, order_id: int, priority: str) -> bool:
        order = self.manager.get_by_id(order_id)
        if order is None:
            return False
        if not order.set_priority(priority):
            return False
        get_order_logger(order_id).info(f"Priority set to {order.priority}")
        return True

    def dequeue_next(self) -> Optional[Order]:
        order = self.manager.dequeue_next()
        if order is not None:
            get_order_logger(order.order_id).info("Taken from the print queue")
        return order

    def queue_size(self) -> int:
        return self.manager.size()

    def reset(self) -> None:
        """Forget every order, queue entry and invoice. Ids keep counting up."""
        self.manager.clear_all()
        with self._invoices_lock:
            self._invoices.clear()
        logger.info("Order service reset")
