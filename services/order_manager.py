"""
Order registry and print queue.

The registry maps order_id -> Order. The print queue is a separate FIFO of
Order references. The two are independent: an order can be registered
without being queued, and the same order can be queued more than once.
Only restore() re-resolves queue entries against the registry.

Thread Safety:
    - One threading.Lock guards both containers
    - Read operations return copies taken under the lock
    - snapshot() gives persistence a consistent view of both containers in
      a single critical section, so file I/O happens without the lock
    - restore() swaps in loaded state atomically, rebuilding the queue from
      the new registry

Usage:
    manager = OrderManager()
    manager.register(order)
    manager.enqueue(order)

    next_order = manager.dequeue_next()
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from logging_config import get_logger
from models.order import Order


logger = get_logger(__name__)


class OrderManager:
    """
    In-memory store of all known orders plus the print queue.

    Create one per application (or per test); there is no global instance.
    """

    def __init__(self):
        self._orders: Dict[int, Order] = {}
        self._queue: Deque[Order] = deque()
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def register(self, order: Optional[Order]) -> None:
        """Insert or replace an order by id. None is ignored."""
        if order is None:
            return
        with self._lock:
            replaced = order.order_id in self._orders
            self._orders[order.order_id] = order
        if replaced:
            logger.debug(f"Order {order.order_id} re-registered, previous record replaced")

    def get_by_id(self, order_id: int) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def get_all(self) -> List[Order]:
        """
        Copy of all registered orders.

        Adding to or removing from the returned list does not change the
        registry. Iteration order is not part of the contract.
        """
        with self._lock:
            return list(self._orders.values())

    def registry_size(self) -> int:
        with self._lock:
            return len(self._orders)

    # -------------------------------------------------------------------------
    # Print queue
    # -------------------------------------------------------------------------

    def enqueue(self, order: Optional[Order]) -> None:
        """Append to the tail of the queue. None is ignored; duplicates are allowed."""
        if order is None:
            return
        with self._lock:
            self._queue.append(order)

    def dequeue_next(self) -> Optional[Order]:
        """Remove and return the head of the queue, or None when empty."""
        with self._lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    def size(self) -> int:
        """Number of entries in the print queue."""
        with self._lock:
            return len(self._queue)

    def queue_snapshot(self) -> List[Order]:
        """Queued orders, head first."""
        with self._lock:
            return list(self._queue)

    def queued_ids(self) -> List[int]:
        with self._lock:
            return [order.order_id for order in self._queue]

    # -------------------------------------------------------------------------
    # Whole-state operations
    # -------------------------------------------------------------------------

    def snapshot(self) -> Tuple[List[Order], List[int]]:
        """
        Consistent copy of both containers.

        Returns:
            (registered orders sorted by id, queued order ids head first)
        """
        with self._lock:
            orders = sorted(self._orders.values(), key=lambda o: o.order_id)
            queue_ids = [order.order_id for order in self._queue]
        return orders, queue_ids

    def clear_all(self) -> int:
        """
        Empty the registry and the queue.

        Returns:
            Number of registered orders removed
        """
        with self._lock:
            count = len(self._orders)
            self._orders.clear()
            self._queue.clear()
        logger.info(f"Cleared {count} orders and the print queue")
        return count

    def restore(
        self,
        orders: Optional[List[Order]] = None,
        queue_ids: Optional[List[int]] = None,
    ) -> List[int]:
        """
        Replace registry and queue in one critical section.

        Args:
            orders: New registry contents (None keeps the current registry)
            queue_ids: New queue, head first (None keeps the current order
                of queued ids)

        Every queue entry is resolved against the new registry, so queued
        orders are always the registered objects.

        Returns:
            Queue ids that had no registered order and were dropped
        """
        missing: List[int] = []
        with self._lock:
            if orders is None:
                registry = dict(self._orders)
            else:
                registry = {order.order_id: order for order in orders}
            if queue_ids is None:
                queue_ids = [order.order_id for order in self._queue]

            queue: Deque[Order] = deque()
            for order_id in queue_ids:
                order = registry.get(order_id)
                if order is None:
                    missing.append(order_id)
                else:
                    queue.append(order)

            self._orders = registry
            self._queue = queue
        logger.info(f"Restored {len(registry)} orders and {len(queue)} queue entries")
        return missing
