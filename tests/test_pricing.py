"""Unit tests for the pricing engine."""

import pytest

from modules.pricing import PricingEngine, format_money
from modules.system_config import PricingSettings, SystemConfig


# 10x10x10cm -> 1 hour per item; hourly rate 0.15 + 2.50; setup 5.00; tax 8%
def expected_subtotal(quantity, cost_per_gram=0.05):
    hours = max(1, quantity) * 1.0
    return quantity * 10 * cost_per_gram + hours * 2.65 + 5.0


class TestPriceComponents:

    def test_material_cost_uses_ten_grams_per_item(self, make_order, system_config):
        breakdown = PricingEngine.price_breakdown(make_order(quantity=2), system_config)
        assert breakdown.material_cost == pytest.approx(1.00)

    def test_regular_order_total(self, make_order, system_config):
        breakdown = PricingEngine.price_breakdown(make_order(quantity=2), system_config)
        assert breakdown.print_hours == pytest.approx(2.0)
        assert breakdown.process_cost == pytest.approx(10.3)
        assert breakdown.subtotal == pytest.approx(11.3)
        assert breakdown.total == pytest.approx(11.3 * 1.08)
        assert breakdown.currency == "USD"

    def test_calculate_price_matches_breakdown(self, make_order, system_config):
        order = make_order(quantity=3)
        assert PricingEngine.calculate_price(order, system_config) == pytest.approx(
            PricingEngine.price_breakdown(order, system_config).total
        )

    def test_accepts_frozen_settings(self, make_order):
        order = make_order(quantity=2)
        assert PricingEngine.calculate_price(order, PricingSettings()) == pytest.approx(11.3 * 1.08)

    def test_zero_quantity_is_process_cost_with_tax(self, make_order, system_config):
        breakdown = PricingEngine.price_breakdown(make_order(quantity=0), system_config)
        assert breakdown.material_cost == 0
        assert breakdown.total == pytest.approx(breakdown.process_cost * 1.08)

    def test_order_without_material_prices_process_only(self, make_order, system_config):
        breakdown = PricingEngine.price_breakdown(make_order(material=None), system_config)
        assert breakdown.material_cost == 0
        assert breakdown.total == pytest.approx(10.3 * 1.08)


class TestDiscountsAndSurcharges:

    def test_vip_pays_less(self, make_order, vip_user, system_config):
        regular = PricingEngine.calculate_price(make_order(), system_config)
        vip = PricingEngine.calculate_price(make_order(user=vip_user), system_config)
        assert vip < regular
        assert vip == pytest.approx(11.3 * 0.90 * 1.08)

    def test_rush_costs_more(self, make_order, system_config):
        normal = make_order()
        rush = make_order()
        rush.set_priority("rush")
        assert PricingEngine.calculate_price(rush, system_config) > PricingEngine.calculate_price(
            normal, system_config
        )
        assert PricingEngine.calculate_price(rush, system_config) == pytest.approx(
            11.3 * 1.25 * 1.08
        )

    def test_rush_surcharge_needs_rush_enabled(self, make_order):
        config = SystemConfig(allow_rush_orders=False)
        rush = make_order()
        rush.set_priority("rush")
        assert PricingEngine.calculate_price(rush, config) == pytest.approx(11.3 * 1.08)

    def test_vip_priority_alone_is_not_a_discount(self, make_order, system_config):
        order = make_order()
        order.set_priority("vip")
        assert PricingEngine.calculate_price(order, system_config) == pytest.approx(11.3 * 1.08)

    def test_bulk_lowers_unit_price(self, make_order, system_config):
        nine = PricingEngine.calculate_price(make_order(quantity=9), system_config) / 9
        ten = PricingEngine.calculate_price(make_order(quantity=10), system_config) / 10
        assert ten < nine

    def test_discounts_multiply(self, make_order, vip_user, system_config):
        breakdown = PricingEngine.price_breakdown(
            make_order(quantity=10, user=vip_user), system_config
        )
        assert breakdown.total == pytest.approx(expected_subtotal(10) * 0.95 * 0.90 * 1.08)
        assert breakdown.bulk_discount == pytest.approx(expected_subtotal(10) * 0.05)


class TestPricingProperties:

    def test_price_non_decreasing_in_quantity(self, make_order, system_config):
        prices = [
            PricingEngine.calculate_price(make_order(quantity=q), system_config)
            for q in range(1, 31)
        ]
        assert prices == sorted(prices)

    def test_reads_configuration_fresh(self, make_order, system_config):
        order = make_order()
        before = PricingEngine.calculate_price(order, system_config)
        system_config.set("tax_rate", 0.20)
        after = PricingEngine.calculate_price(order, system_config)
        assert after == pytest.approx(11.3 * 1.20)
        assert after > before


def test_format_money():
    assert format_money(12.204) == "12.20 USD"
    assert format_money(3.5, "EUR") == "3.50 EUR"
    assert format_money(3.5, None) == "3.50"
