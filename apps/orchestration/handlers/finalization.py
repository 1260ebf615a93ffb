"""Finalization stage: processing -> completed."""

import logging
from typing import Any

from apps.orchestration.broker import ORDER_ENRICHED
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.handlers.base import StageHandler
from apps.orders.models import Order, OrderStatus, TransitionOutcome

logger = logging.getLogger(__name__)


class FinalizationHandler(StageHandler):
    """Stage 3: completes an enriched order. Terminal, publishes nothing."""

    stage = "finalization"
    consumes = ORDER_ENRICHED
    publishes = None

    def handle(self, event: OrderEvent, headers: dict[str, Any]) -> None:
        logger.info(f"Received enriched order {event.id}", extra={"order_id": event.id})

        outcome = Order.objects.advance_status(event.order_id, OrderStatus.COMPLETED)

        if outcome is TransitionOutcome.REJECTED:
            logger.warning(
                f"Cannot complete order {event.id}: not in processing",
                extra={"order_id": event.id, "stage": self.stage},
            )
            return

        if outcome is TransitionOutcome.UNCHANGED:
            logger.info(
                f"Order {event.id} already {OrderStatus.COMPLETED}; duplicate delivery",
                extra={"order_id": event.id, "stage": self.stage},
            )
            return

        logger.info(
            f"Order status updated: {event.id} -> {OrderStatus.COMPLETED}",
            extra={"order_id": event.id, "order_status": OrderStatus.COMPLETED},
        )
