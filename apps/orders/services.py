"""
Order services.

This module contains the two synchronous operations of the order pipeline:
- OrderIngestionGate: idempotent admission of new orders
- OrderReadService: cache-aside order lookups
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.orchestration.broker import ORDER_CREATED, EventPublisher
from apps.orchestration.dtos import OrderEvent
from apps.orders.exceptions import CacheError, EventPublishError, MissingIdempotencyKey
from apps.orders.models import (
    IdempotencyKey,
    Order,
    OrderEnrichment,
    OrderItem,
    OrderStatus,
)
from apps.orders.validators import OrderRequest, validate_order_request

logger = logging.getLogger(__name__)


class AdmissionOutcome(Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already-exists"
    INVALID = "invalid"


@dataclass
class AdmissionResult:
    """Result of admitting an order request."""

    outcome: AdmissionOutcome
    order_id: uuid.UUID | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def created(self) -> bool:
        return self.outcome is AdmissionOutcome.CREATED

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


class OrderIngestionGate:
    """
    Admits new orders into the pipeline.

    A token that was seen before short-circuits to the order it created, so
    repeating a request never creates a second order or a second event. The
    order, its items and the token are committed in one transaction; two
    concurrent requests with the same token race on the token's primary key
    and the loser reports the winner's order.

    Usage:
        gate = OrderIngestionGate(publisher=EventPublisher(get_connection()))
        result = gate.admit("token-123", {"customer_id": "c1", "items": [...]})
    """

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    def admit(self, idempotency_token: str | None, order_request: Any) -> AdmissionResult:
        """
        Admit an order request.

        Args:
            idempotency_token: Caller-supplied token (required).
            order_request: Decoded JSON request body.

        Returns:
            AdmissionResult describing what happened.

        Raises:
            MissingIdempotencyKey: If the token is empty.
            EventPublishError: If the order was stored but ``order.created``
                could not be published.
        """
        if not idempotency_token or not idempotency_token.strip():
            raise MissingIdempotencyKey()

        existing = self._lookup(idempotency_token)
        if existing is not None:
            return AdmissionResult(outcome=AdmissionOutcome.ALREADY_EXISTS, order_id=existing)

        request, errors = validate_order_request(order_request)
        if request is None:
            return AdmissionResult(outcome=AdmissionOutcome.INVALID, errors=errors)

        try:
            order = self._create(idempotency_token, request)
        except IntegrityError:
            # Lost the race for this token; the winner's order stands.
            existing = self._lookup(idempotency_token)
            if existing is None:
                raise
            logger.info(
                f"Concurrent admission for idempotency key resolved to order {existing}",
                extra={"order_id": str(existing)},
            )
            return AdmissionResult(outcome=AdmissionOutcome.ALREADY_EXISTS, order_id=existing)

        logger.info(
            f"Order created: {order.pk} [{order.status}]",
            extra={"order_id": str(order.pk), "order_status": order.status},
        )

        event = OrderEvent.from_order(order)
        try:
            self.publisher.publish(ORDER_CREATED, event.to_dict())
        except Exception as e:
            logger.exception(
                f"Order {order.pk} stored but {ORDER_CREATED} was not published",
                extra={"order_id": str(order.pk)},
            )
            raise EventPublishError(order.pk, ORDER_CREATED, e) from e

        return AdmissionResult(outcome=AdmissionOutcome.CREATED, order_id=order.pk)

    def _lookup(self, token: str) -> uuid.UUID | None:
        return IdempotencyKey.objects.filter(key=token).values_list("order_id", flat=True).first()

    def _create(self, token: str, request: OrderRequest) -> Order:
        with transaction.atomic():
            order = Order.objects.create(
                customer_id=request.customer_id,
                status=OrderStatus.PENDING,
                total_amount=request.total_amount,
            )
            OrderItem.objects.bulk_create(
                [OrderItem(order=order, sku=item.sku, qty=item.qty) for item in request.items]
            )
            IdempotencyKey.objects.create(key=token, order=order)
        return order


class ReadSource(Enum):
    CACHE = "cache"
    STORE = "store"


def cache_key(order_id) -> str:
    return f"order:{order_id}"


def serialize_enrichment(enrichment: OrderEnrichment | None) -> dict[str, Any] | None:
    if enrichment is None:
        return None
    return {
        "id": enrichment.pk,
        "order_id": str(enrichment.order_id),
        "data": enrichment.data,
        "created_at": enrichment.created_at.isoformat() if enrichment.created_at else None,
    }


class OrderReadService:
    """
    Cache-aside order lookups.

    Cached views are never invalidated when an order advances; a reader can
    see a stale status for up to ``ttl_seconds``.
    """

    def __init__(self, cache, ttl_seconds: int | None = None):
        self.cache = cache
        self.ttl_seconds = (
            ttl_seconds
            if ttl_seconds is not None
            else int(getattr(settings, "ORDERS_CACHE_TTL_SECONDS", 60))
        )

    def get_order(self, order_id: uuid.UUID) -> tuple[str, ReadSource]:
        """
        Return the order view as JSON text and where it came from.

        Raises:
            CacheError: If the cache cannot be read.
            Order.DoesNotExist: If the order does not exist.
        """
        key = cache_key(order_id)

        try:
            cached = self.cache.get(key)
        except Exception as e:
            logger.error(f"Cache read failed for {key}: {e}", extra={"order_id": str(order_id)})
            raise CacheError(f"Cache error: {e}") from e

        if cached is not None:
            logger.info(f"Returning cached order {order_id}", extra={"order_id": str(order_id)})
            return cached, ReadSource.CACHE

        order = Order.objects.prefetch_related("items").get(pk=order_id)

        enrichment = None
        if order.status == OrderStatus.COMPLETED:
            enrichment = OrderEnrichment.objects.filter(order=order).first()

        view = json.dumps(
            {
                "order": OrderEvent.from_order(order).to_dict(),
                "order_enriched": serialize_enrichment(enrichment),
            },
            cls=DjangoJSONEncoder,
        )

        try:
            self.cache.set(key, view, timeout=self.ttl_seconds)
            logger.info(f"Saving order {order_id} to cache", extra={"order_id": str(order_id)})
        except Exception as e:
            logger.error(
                f"Could not save order {order_id} to cache: {e}",
                extra={"order_id": str(order_id)},
            )

        return view, ReadSource.STORE


def purge_idempotency_keys(retention_days: int | None = None) -> int:
    """
    Delete idempotency keys older than the retention window.

    Keys are kept forever unless ``retention_days`` (or the
    ORDERS_IDEMPOTENCY_KEY_RETENTION_DAYS setting) is set. A purged token can
    be reused and will admit a new order.

    Returns:
        Number of keys deleted.
    """
    if retention_days is None:
        retention_days = getattr(settings, "ORDERS_IDEMPOTENCY_KEY_RETENTION_DAYS", None)
    if not retention_days:
        return 0

    cutoff = timezone.now() - timedelta(days=retention_days)
    deleted, _ = IdempotencyKey.objects.filter(created_at__lt=cutoff).delete()
    logger.info(f"Purged {deleted} idempotency keys older than {retention_days} days")
    return deleted
