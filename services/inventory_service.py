"""
Material stock levels.

Stock is tracked in grams per material name. Materials that were never
stocked explicitly report DEFAULT_STOCK_GRAMS, like the shop's legacy
inventory file did.

Thread Safety:
    - All reads and writes hold one threading.Lock
    - consume() checks and subtracts in the same critical section, so two
      concurrent orders cannot both take the last of a spool
"""

from __future__ import annotations

import threading
from typing import Dict, Optional

from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_STOCK_GRAMS = 1000


class InventoryService:
    """
    Grams of stock per material.

    Usage:
        inventory = InventoryService({"PLA": 5000})
        if inventory.has_sufficient("PLA", 20):
            inventory.consume("PLA", 20)
    """

    def __init__(self, stock: Optional[Dict[str, int]] = None, default_grams: int = DEFAULT_STOCK_GRAMS):
        self._stock: Dict[str, int] = dict(stock or {})
        self._default_grams = default_grams
        self._lock = threading.Lock()

    def set_stock(self, material_name: str, grams: int) -> None:
        if grams < 0:
            raise ValueError(f"Stock cannot be negative: {grams}")
        with self._lock:
            self._stock[material_name] = int(grams)
        logger.debug(f"Stock for {material_name} set to {grams}g")

    def get_stock(self, material_name: str) -> int:
        with self._lock:
            return self._stock.get(material_name, self._default_grams)

    def has_sufficient(self, material_name: str, grams: int) -> bool:
        return self.get_stock(material_name) >= grams

    def consume(self, material_name: str, grams: int) -> bool:
        """
        Take grams out of stock.

        Returns:
            True if the stock covered the request, False (and no change) otherwise
        """
        with self._lock:
            available = self._stock.get(material_name, self._default_grams)
            if available < grams:
                logger.warning(
                    f"Cannot consume {grams}g of {material_name}: only {available}g left"
                )
                return False
            self._stock[material_name] = available - grams
            remaining = self._stock[material_name]
        logger.info(f"Consumed {grams}g of {material_name}, {remaining}g remaining")
        return True

    def levels(self) -> Dict[str, int]:
        """Copy of explicitly tracked stock levels."""
        with self._lock:
            return dict(self._stock)
