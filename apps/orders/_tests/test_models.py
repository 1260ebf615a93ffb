import uuid

import pytest
from django.test import TestCase

from apps.orders.models import Order, OrderEnrichment, OrderStatus, TransitionOutcome


class OrderStatusTransitionTests(TestCase):
    """Compare-and-set status updates."""

    def setUp(self):
        self.order = Order.objects.create(customer_id="cust-1")

    def test_new_order_is_pending(self):
        assert self.order.status == OrderStatus.PENDING
        assert not self.order.is_terminal

    def test_pending_to_processing_advances(self):
        outcome = Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING)

        assert outcome is TransitionOutcome.ADVANCED
        self.order.refresh_from_db()
        assert self.order.status == OrderStatus.PROCESSING

    def test_repeat_transition_is_unchanged(self):
        Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING)

        outcome = Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING)

        assert outcome is TransitionOutcome.UNCHANGED

    def test_pending_cannot_complete(self):
        outcome = Order.objects.advance_status(self.order.pk, OrderStatus.COMPLETED)

        assert outcome is TransitionOutcome.REJECTED
        self.order.refresh_from_db()
        assert self.order.status == OrderStatus.PENDING

    def test_completed_never_moves_backward(self):
        Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING)
        Order.objects.advance_status(self.order.pk, OrderStatus.COMPLETED)

        assert Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING) is TransitionOutcome.REJECTED
        assert Order.objects.advance_status(self.order.pk, OrderStatus.FAILED) is TransitionOutcome.REJECTED

        self.order.refresh_from_db()
        assert self.order.status == OrderStatus.COMPLETED
        assert self.order.is_terminal

    def test_updated_at_moves_on_advance(self):
        before = self.order.updated_at

        Order.objects.advance_status(self.order.pk, OrderStatus.PROCESSING)

        self.order.refresh_from_db()
        assert self.order.updated_at >= before

    def test_missing_order_raises(self):
        with pytest.raises(Order.DoesNotExist):
            Order.objects.advance_status(uuid.uuid4(), OrderStatus.PROCESSING)


class MarkFailedTests(TestCase):
    def test_mark_failed_from_processing(self):
        order = Order.objects.create(customer_id="c", status=OrderStatus.PROCESSING)

        assert order.mark_failed() is TransitionOutcome.ADVANCED
        assert order.status == OrderStatus.FAILED

    def test_mark_failed_rejected_from_pending(self):
        order = Order.objects.create(customer_id="c")

        assert order.mark_failed() is TransitionOutcome.REJECTED
        assert order.status == OrderStatus.PENDING


@pytest.mark.django_db
def test_items_keep_creation_order(make_order):
    order = make_order(items=[("A", 1), ("B", 2), ("C", 3)])

    assert [item.sku for item in order.items.all()] == ["A", "B", "C"]


@pytest.mark.django_db
def test_enrichment_is_one_per_order(make_order):
    from django.db import IntegrityError, transaction

    order = make_order()
    OrderEnrichment.objects.create(order=order, data={"message": "enriched"})

    with pytest.raises(IntegrityError), transaction.atomic():
        OrderEnrichment.objects.create(order=order, data={"message": "again"})
