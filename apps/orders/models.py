"""
Models for the order pipeline.

Orders, their line items, the enrichment artifact produced by the pipeline,
and the idempotency keys that guard order admission.
"""

import uuid
from enum import Enum

from django.db import models
from django.utils import timezone


class OrderStatus(models.TextChoices):
    """Order status (state machine)."""

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    FAILED = "failed", "Failed"
    COMPLETED = "completed", "Completed"


# Target status -> statuses it may be entered from.
ALLOWED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    OrderStatus.PROCESSING: (OrderStatus.PENDING,),
    OrderStatus.COMPLETED: (OrderStatus.PROCESSING,),
    OrderStatus.FAILED: (OrderStatus.PROCESSING,),
}

TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.FAILED)


class TransitionOutcome(Enum):
    """Result of a compare-and-set status update."""

    ADVANCED = "advanced"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"


class OrderQuerySet(models.QuerySet):
    def advance_status(self, order_id, target: str) -> TransitionOutcome:
        """
        Move an order to ``target`` if the transition table allows it.

        The update is a single conditional UPDATE, so two workers racing on the
        same order cannot both win and a stale redelivery can never move an
        order backward.

        Raises:
            Order.DoesNotExist: If no order has this id.
        """
        allowed_from = ALLOWED_TRANSITIONS.get(target, ())
        updated = self.filter(pk=order_id, status__in=allowed_from).update(
            status=target, updated_at=timezone.now()
        )
        if updated:
            return TransitionOutcome.ADVANCED

        current = self.filter(pk=order_id).values_list("status", flat=True).first()
        if current is None:
            raise Order.DoesNotExist(f"Order not found: {order_id}")
        if current == target:
            return TransitionOutcome.UNCHANGED
        return TransitionOutcome.REJECTED


class Order(models.Model):
    """
    A customer order.

    Created by the ingestion gate in ``pending`` and advanced by the stage
    workers along pending → processing → completed|failed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer_id = models.CharField(max_length=255, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]

    def __str__(self):
        return f"Order {self.id} [{self.status}]"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def mark_failed(self) -> TransitionOutcome:
        """Fail a stalled order. Only legal from ``processing``."""
        outcome = Order.objects.advance_status(self.pk, OrderStatus.FAILED)
        self.refresh_from_db(fields=["status", "updated_at"])
        return outcome


class OrderItem(models.Model):
    """A line item. Written once together with its order."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    sku = models.CharField(max_length=255)
    qty = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.sku} x{self.qty}"


class OrderEnrichment(models.Model):
    """Artifact produced by the enrichment stage (at most one per order)."""

    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="enrichment")
    data = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Enrichment for {self.order_id}"


class IdempotencyKey(models.Model):
    """Caller-supplied token bound to the order it created."""

    key = models.CharField(max_length=255, primary_key=True)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="idempotency_keys")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.key} -> {self.order_id}"
