"""
Price calculation for print orders.

Formula (applied in this order):
    material  = quantity x GRAMS_PER_ITEM x material.cost_per_gram
    process   = hours x (electricity + machine time) + base setup
    subtotal  = material + process
    x 0.95    if quantity >= BULK_QUANTITY          (bulk discount)
    x 0.90    if the customer's role is "vip"       (VIP discount)
    x (1 + rush_order_surcharge)  if priority is rush and rush is enabled
    x (1 + tax_rate)

Discounts multiply; they never add up. Prices are not cached: every call
reads the configuration again. Values stay full-precision floats; round
only when displaying (format_money).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union

from models.order import Order, Priority
from modules.estimator import PrintTimeEstimator
from modules.system_config import PricingSettings, SystemConfig


# Material budget per printed item; stock checks consume the same amount
GRAMS_PER_ITEM = 10

BULK_QUANTITY = 10
BULK_DISCOUNT_FACTOR = 0.95
VIP_DISCOUNT_FACTOR = 0.90


@dataclass(frozen=True)
class PriceBreakdown:
    """Every intermediate amount of one price calculation."""

    material_cost: float
    process_cost: float
    print_hours: float
    subtotal: float
    bulk_discount: float
    vip_discount: float
    rush_surcharge: float
    tax: float
    total: float
    currency: str = "USD"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PricingEngine:
    """Stateless price calculator. All methods are pure."""

    @staticmethod
    def _settings(config: Union[SystemConfig, PricingSettings]) -> PricingSettings:
        if isinstance(config, SystemConfig):
            return config.snapshot()
        return config

    @classmethod
    def price_breakdown(
        cls,
        order: Order,
        config: Union[SystemConfig, PricingSettings],
    ) -> PriceBreakdown:
        """Compute the price of an order and keep every intermediate step."""
        settings = cls._settings(config)
        quantity = order.quantity

        cost_per_gram = order.material.cost_per_gram if order.material else 0.0
        material_cost = quantity * GRAMS_PER_ITEM * cost_per_gram

        hours = PrintTimeEstimator.estimate_hours(order.dimensions, quantity)
        hourly_rate = settings.electricity_cost_per_hour + settings.machine_time_cost_per_hour
        process_cost = hours * hourly_rate + settings.base_setup_cost

        subtotal = material_cost + process_cost
        running = subtotal

        bulk_discount = 0.0
        if quantity >= BULK_QUANTITY:
            discounted = running * BULK_DISCOUNT_FACTOR
            bulk_discount = running - discounted
            running = discounted

        vip_discount = 0.0
        if order.user is not None and order.user.is_vip:
            discounted = running * VIP_DISCOUNT_FACTOR
            vip_discount = running - discounted
            running = discounted

        rush_surcharge = 0.0
        if order.priority_enum is Priority.RUSH and settings.allow_rush_orders:
            surcharged = running * (1.0 + settings.rush_order_surcharge)
            rush_surcharge = surcharged - running
            running = surcharged

        total = running * (1.0 + settings.tax_rate)

        return PriceBreakdown(
            material_cost=material_cost,
            process_cost=process_cost,
            print_hours=hours,
            subtotal=subtotal,
            bulk_discount=bulk_discount,
            vip_discount=vip_discount,
            rush_surcharge=rush_surcharge,
            tax=total - running,
            total=total,
            currency=settings.currency,
        )

    @classmethod
    def calculate_price(
        cls,
        order: Order,
        config: Union[SystemConfig, PricingSettings],
    ) -> float:
        """Final price of the order under the given configuration."""
        return cls.price_breakdown(order, config).total


def format_money(amount: float, currency: Optional[str] = "USD") -> str:
    """Two-decimal display form, e.g. '12.34 USD'."""
    if currency:
        return f"{amount:.2f} {currency}"
    return f"{amount:.2f}"
