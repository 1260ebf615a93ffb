"""
Enrichment stage with dead-letter retries.

Retries are not a local loop. A failed attempt raises, the runner rejects the
delivery, and the broker parks it in the retry queue for the configured delay
before routing it back here. The attempt number is recomputed from the
``x-death`` header on every delivery, so a worker restart loses no progress.

Per-delivery states:
    fresh (n=0) -> retry-1 -> retry-2 -> ... -> exhausted (n >= max_retries)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from django.conf import settings
from django.db import transaction

from apps.orchestration.broker import (
    ENRICHMENT_REQUESTED,
    ORDER_ENRICHED,
    EventPublisher,
    Topology,
    retry_count,
)
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.exceptions import EnrichmentError
from apps.orchestration.handlers.base import StageHandler
from apps.orchestration.signals import PipelineMonitor, SignalTags
from apps.orders.models import (
    TERMINAL_STATUSES,
    Order,
    OrderEnrichment,
    OrderStatus,
)

logger = logging.getLogger(__name__)


class SimulatedEnricher:
    """
    Stand-in for an external enrichment provider.

    Fails for every customer id containing ``failure_marker`` and otherwise
    blocks for ``work_seconds`` before returning a fixed payload.
    """

    def __init__(
        self,
        failure_marker: str = "f",
        work_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.failure_marker = failure_marker
        self.work_seconds = work_seconds
        self.sleep = sleep

    def enrich(self, event: OrderEvent) -> dict[str, Any]:
        if self.failure_marker and self.failure_marker in event.customer_id:
            raise EnrichmentError(event.id)

        logger.info(f"Starting data enrichment for order {event.id}", extra={"order_id": event.id})
        if self.work_seconds > 0:
            self.sleep(self.work_seconds)
        logger.info(f"Finished data enrichment for order {event.id}", extra={"order_id": event.id})

        return {"message": "enriched"}


class EnrichmentHandler(StageHandler):
    """
    Stage 2: enriches a processing order.

    Outcomes per delivery:
    - order already terminal: acknowledge, do nothing
    - retry budget spent: mark the order failed, acknowledge
    - provider failure: raise EnrichmentError (rejected into the retry queue)
    - success: store the artifact, publish ``order.enriched``
    """

    stage = "enrichment"
    consumes = ENRICHMENT_REQUESTED
    publishes = ORDER_ENRICHED
    retryable = True

    def __init__(
        self,
        publisher: EventPublisher | None = None,
        enricher: SimulatedEnricher | None = None,
        max_retries: int = 3,
        queue_name: str = ENRICHMENT_REQUESTED,
        monitor: PipelineMonitor | None = None,
    ):
        super().__init__(publisher=publisher, monitor=monitor)
        self.enricher = enricher or SimulatedEnricher()
        self.max_retries = max_retries
        self.queue_name = queue_name

    @classmethod
    def from_settings(
        cls,
        publisher: EventPublisher,
        topology: Topology,
        monitor: PipelineMonitor | None = None,
    ) -> "EnrichmentHandler":
        enricher = SimulatedEnricher(
            failure_marker=getattr(settings, "ORCHESTRATION_ENRICHMENT_FAILURE_MARKER", "f"),
            work_seconds=float(getattr(settings, "ORCHESTRATION_ENRICHMENT_WORK_SECONDS", 5)),
        )
        return cls(
            publisher=publisher,
            enricher=enricher,
            max_retries=int(getattr(settings, "ORCHESTRATION_ENRICHMENT_MAX_RETRIES", 3)),
            queue_name=topology.enrichment_requested.name,
            monitor=monitor,
        )

    def handle(self, event: OrderEvent, headers: dict[str, Any]) -> None:
        attempts = retry_count(headers, self.queue_name)
        logger.info(
            f"Received order {event.id} for enrichment (retry {attempts})",
            extra={"order_id": event.id, "attempt": attempts + 1},
        )

        status = Order.objects.filter(pk=event.order_id).values_list("status", flat=True).first()
        if status is None:
            raise Order.DoesNotExist(f"Order not found: {event.id}")
        if status in TERMINAL_STATUSES:
            logger.warning(
                f"Skipping enrichment for order {event.id}: already {status}",
                extra={"order_id": event.id, "order_status": status},
            )
            return

        if attempts >= self.max_retries:
            self._give_up(event, attempts)
            return

        tags = SignalTags(
            order_id=event.id,
            stage=self.stage,
            attempt=attempts + 1,
            customer_id=event.customer_id,
        )
        try:
            data = self.enricher.enrich(event)
        except EnrichmentError:
            self.monitor.stage_retrying(tags)
            raise

        with transaction.atomic():
            _, created = OrderEnrichment.objects.get_or_create(
                order_id=event.order_id,
                defaults={"data": data},
            )
        if not created:
            logger.warning(
                f"Order {event.id} was already enriched; re-publishing",
                extra={"order_id": event.id},
            )

        self.forward(event)

    def _give_up(self, event: OrderEvent, attempts: int) -> None:
        Order.objects.advance_status(event.order_id, OrderStatus.FAILED)
        logger.error(
            f"Order {event.id} exceeded maximum retries allowed ({self.max_retries})",
            extra={"order_id": event.id, "attempt": attempts + 1},
        )
        self.monitor.stage_exhausted(
            SignalTags(
                order_id=event.id,
                stage=self.stage,
                attempt=attempts + 1,
                customer_id=event.customer_id,
            ),
            max_retries=self.max_retries,
        )
