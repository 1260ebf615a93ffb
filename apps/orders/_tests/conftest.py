"""Shared test fixtures for the orders app."""

from decimal import Decimal
from unittest.mock import Mock

import pytest

from apps.orders.models import Order, OrderItem, OrderStatus


@pytest.fixture
def order_request():
    """A valid order request body."""
    return {
        "customer_id": "cust-1",
        "total_amount": 10.0,
        "items": [{"sku": "X", "qty": 2}, {"sku": "Y", "qty": 1}],
    }


@pytest.fixture
def publisher():
    """A stand-in for EventPublisher that records calls."""
    return Mock(spec=["publish"])


@pytest.fixture
def make_order(db):
    """Factory for stored orders with items."""

    def _make(status=OrderStatus.PENDING, customer_id="cust-1", items=(("X", 2),)):
        order = Order.objects.create(
            customer_id=customer_id,
            status=status,
            total_amount=Decimal("10.00"),
        )
        for sku, qty in items:
            OrderItem.objects.create(order=order, sku=sku, qty=qty)
        return order

    return _make
