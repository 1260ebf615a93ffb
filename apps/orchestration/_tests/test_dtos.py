"""Tests for the order event contract."""

import uuid

import pytest
from django.test import TestCase

from apps.orchestration.dtos import OrderEvent
from apps.orchestration.exceptions import EventDecodeError
from apps.orders.models import Order, OrderItem, OrderStatus


class OrderEventTests(TestCase):
    def setUp(self):
        self.order = Order.objects.create(customer_id="cust-1", total_amount="12.50")
        OrderItem.objects.create(order=self.order, sku="A", qty=1)
        OrderItem.objects.create(order=self.order, sku="B", qty=3)
        self.order.refresh_from_db()

    def test_from_order(self):
        event = OrderEvent.from_order(self.order)

        assert event.id == str(self.order.pk)
        assert event.order_id == self.order.pk
        assert event.status == OrderStatus.PENDING
        assert event.total_amount == 12.5
        assert [(i.sku, i.qty) for i in event.items] == [("A", 1), ("B", 3)]
        assert event.items[0].order_id == str(self.order.pk)
        assert event.created_at == self.order.created_at.isoformat()

    def test_dict_form_decodes_to_same_event(self):
        event = OrderEvent.from_order(self.order)

        assert OrderEvent.from_dict(event.to_dict()) == event

    def test_with_status_only_changes_status(self):
        event = OrderEvent.from_order(self.order)

        processing = event.with_status(OrderStatus.PROCESSING)

        assert processing.status == OrderStatus.PROCESSING
        assert event.status == OrderStatus.PENDING
        assert processing.items == event.items
        assert processing.id == event.id


def test_from_dict_rejects_non_object():
    with pytest.raises(EventDecodeError):
        OrderEvent.from_dict(["not", "an", "event"])


def test_from_dict_rejects_missing_fields():
    with pytest.raises(EventDecodeError):
        OrderEvent.from_dict({"id": str(uuid.uuid4()), "status": "pending"})


def test_from_dict_rejects_bad_id():
    with pytest.raises(EventDecodeError):
        OrderEvent.from_dict({"id": "nope", "customer_id": "c", "status": "pending"})


def test_from_dict_rejects_bad_items():
    with pytest.raises(EventDecodeError):
        OrderEvent.from_dict(
            {"id": str(uuid.uuid4()), "customer_id": "c", "status": "pending", "items": [{"sku": "A"}]}
        )


def test_from_dict_defaults_optional_fields():
    event = OrderEvent.from_dict({"id": str(uuid.uuid4()), "customer_id": "c", "status": "pending"})

    assert event.items == []
    assert event.total_amount == 0.0
    assert event.created_at is None
