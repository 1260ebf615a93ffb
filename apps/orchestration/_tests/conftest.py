"""Shared test fixtures for orchestration app."""

from unittest.mock import Mock

import pytest

from apps.orchestration.broker import ENRICHMENT_REQUESTED
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.signals import MonitoringBackend, PipelineMonitor
from apps.orders.models import Order, OrderItem, OrderStatus


class RecordingBackend(MonitoringBackend):
    """Keeps emitted signals in memory."""

    def __init__(self):
        self.signals = []

    def emit(self, signal_name, tags, value=None, extra=None):
        self.signals.append((signal_name, tags, value, extra or {}))

    def names(self):
        return [name for name, *_ in self.signals]


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def monitor(backend):
    return PipelineMonitor(backend=backend)


@pytest.fixture
def publisher():
    return Mock(spec=["publish"])


@pytest.fixture
def make_order(db):
    def _make(status=OrderStatus.PENDING, customer_id="cust-1"):
        order = Order.objects.create(customer_id=customer_id, status=status, total_amount=10)
        OrderItem.objects.create(order=order, sku="X", qty=2)
        return Order.objects.get(pk=order.pk)

    return _make


@pytest.fixture
def event_for():
    def _event(order):
        return OrderEvent.from_order(order)

    return _event


def x_death(count, queue=ENRICHMENT_REQUESTED, reason="rejected"):
    """Build headers the way RabbitMQ records dead-lettering."""
    return {
        "x-death": [
            {
                "count": count,
                "reason": reason,
                "queue": queue,
                "exchange": "order.events",
                "routing-keys": [ENRICHMENT_REQUESTED],
            }
        ]
    }
