"""Processing stage: pending -> processing, then request enrichment."""

import logging
from typing import Any

from apps.orchestration.broker import ENRICHMENT_REQUESTED, ORDER_CREATED
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.handlers.base import StageHandler
from apps.orders.models import Order, OrderStatus, TransitionOutcome

logger = logging.getLogger(__name__)


class ProcessingHandler(StageHandler):
    """
    Stage 1: marks an admitted order as processing.

    A redelivered event for an order that is already processing re-publishes
    the enrichment request, covering a crash between commit and publish.
    An event for an order that has moved past this stage is dropped.
    """

    stage = "processing"
    consumes = ORDER_CREATED
    publishes = ENRICHMENT_REQUESTED

    def handle(self, event: OrderEvent, headers: dict[str, Any]) -> None:
        outcome = Order.objects.advance_status(event.order_id, OrderStatus.PROCESSING)

        if outcome is TransitionOutcome.REJECTED:
            logger.warning(
                f"Ignoring order.created for order {event.id}: already past processing",
                extra={"order_id": event.id, "stage": self.stage},
            )
            return

        if outcome is TransitionOutcome.UNCHANGED:
            logger.info(
                f"Order {event.id} already {OrderStatus.PROCESSING}; re-requesting enrichment",
                extra={"order_id": event.id, "stage": self.stage},
            )
        else:
            logger.info(
                f"Order status updated: {event.id} -> {OrderStatus.PROCESSING}",
                extra={"order_id": event.id, "order_status": OrderStatus.PROCESSING},
            )
        self.forward(event.with_status(OrderStatus.PROCESSING))
