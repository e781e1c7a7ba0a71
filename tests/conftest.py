"""Shared fixtures for the order manager tests."""

import pytest

from models.order import IdGenerator, MaterialSnapshot, Order, UserSnapshot
from modules.system_config import SystemConfig
from services.inventory_service import InventoryService
from services.order_manager import OrderManager
from services.order_service import OrderService


@pytest.fixture
def pla():
    return MaterialSnapshot(name="PLA", cost_per_gram=0.05, print_temp=210, color="red")


@pytest.fixture
def customer():
    return UserSnapshot(username="alice", email="alice@example.com", role="customer")


@pytest.fixture
def vip_user():
    return UserSnapshot(username="victor", email="victor@example.com", role="vip")


@pytest.fixture
def system_config():
    return SystemConfig()


@pytest.fixture
def manager():
    return OrderManager()


@pytest.fixture
def inventory():
    return InventoryService()


@pytest.fixture
def order_service(manager, system_config, inventory):
    return OrderService(manager, system_config, inventory=inventory, id_generator=IdGenerator())


@pytest.fixture
def make_order(customer, pla):
    """Factory for orders with explicit ids (no generator involved)."""

    def _make(order_id=1, quantity=2, dimensions="10x10x10cm", user=customer,
              material=pla, instructions=""):
        return Order(
            order_id=order_id,
            user=user,
            material=material,
            dimensions=dimensions,
            quantity=quantity,
            special_instructions=instructions,
        )

    return _make
