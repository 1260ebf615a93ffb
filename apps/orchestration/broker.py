"""
Message channel topology and publishing.

All pipeline events go through one durable direct exchange, ``order.events``.
Each stage consumes its own queue bound by routing key:

    order.created               -> processing worker
    order.enrichment.requested  -> enrichment worker
    order.enriched              -> finalization worker

The enrichment queue dead-letters rejected messages into
``order.events.retry``. Messages wait there in a delay queue until their TTL
expires, then dead-letter back onto ``order.events`` with the enrichment routing
key. RabbitMQ records every hop in the ``x-death`` header, which is where the
enrichment worker reads its retry count from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from kombu import Connection, Exchange, Queue
from kombu.pools import producers

logger = logging.getLogger(__name__)

ORDER_EVENTS_EXCHANGE_NAME = "order.events"
ORDER_RETRY_EXCHANGE_NAME = "order.events.retry"

ORDER_CREATED = "order.created"
ENRICHMENT_REQUESTED = "order.enrichment.requested"
ORDER_ENRICHED = "order.enriched"

ENRICHMENT_RETRY_QUEUE = "order.enrichment.requested.retry"

ROUTING_KEYS = (ORDER_CREATED, ENRICHMENT_REQUESTED, ORDER_ENRICHED)

order_events_exchange = Exchange(ORDER_EVENTS_EXCHANGE_NAME, type="direct", durable=True)
order_retry_exchange = Exchange(ORDER_RETRY_EXCHANGE_NAME, type="direct", durable=True)


@dataclass
class Topology:
    """The queues of the pipeline. Queue names equal their routing keys."""

    order_created: Queue
    enrichment_requested: Queue
    enrichment_retry: Queue
    order_enriched: Queue

    @classmethod
    def build(cls, retry_delay_ms: int | None = None) -> "Topology":
        """
        Build the topology.

        Args:
            retry_delay_ms: Enrichment retry backoff (default from settings).
        """
        if retry_delay_ms is None:
            retry_delay_ms = int(getattr(settings, "ORCHESTRATION_ENRICHMENT_RETRY_DELAY_MS", 10000))

        return cls(
            order_created=Queue(
                ORDER_CREATED,
                exchange=order_events_exchange,
                routing_key=ORDER_CREATED,
                durable=True,
            ),
            enrichment_requested=Queue(
                ENRICHMENT_REQUESTED,
                exchange=order_events_exchange,
                routing_key=ENRICHMENT_REQUESTED,
                durable=True,
                queue_arguments={
                    "x-dead-letter-exchange": ORDER_RETRY_EXCHANGE_NAME,
                    "x-dead-letter-routing-key": ENRICHMENT_REQUESTED,
                },
            ),
            enrichment_retry=Queue(
                ENRICHMENT_RETRY_QUEUE,
                exchange=order_retry_exchange,
                routing_key=ENRICHMENT_REQUESTED,
                durable=True,
                queue_arguments={
                    "x-message-ttl": retry_delay_ms,
                    "x-dead-letter-exchange": ORDER_EVENTS_EXCHANGE_NAME,
                    "x-dead-letter-routing-key": ENRICHMENT_REQUESTED,
                },
            ),
            order_enriched=Queue(
                ORDER_ENRICHED,
                exchange=order_events_exchange,
                routing_key=ORDER_ENRICHED,
                durable=True,
            ),
        )

    def all(self) -> list[Queue]:
        return [
            self.order_created,
            self.enrichment_requested,
            self.enrichment_retry,
            self.order_enriched,
        ]

    def queue_for(self, routing_key: str) -> Queue:
        """Return the stage queue consuming ``routing_key``."""
        queues = {
            ORDER_CREATED: self.order_created,
            ENRICHMENT_REQUESTED: self.enrichment_requested,
            ORDER_ENRICHED: self.order_enriched,
        }
        if routing_key not in queues:
            raise KeyError(f"Unknown routing key: {routing_key}. Available: {list(queues)}")
        return queues[routing_key]

    def declarations_for(self, routing_key: str) -> list[Queue]:
        """Entities that must exist before publishing on ``routing_key``."""
        if routing_key == ENRICHMENT_REQUESTED:
            return [self.enrichment_requested, self.enrichment_retry]
        return [self.queue_for(routing_key)]

    def declare(self, connection: Connection) -> None:
        """Declare exchanges, queues and bindings. Safe to repeat."""
        channel = connection.default_channel
        for queue in self.all():
            queue.bind(channel).declare()
            logger.info(f"Declared queue {queue.name} on {queue.exchange.name}")


def retry_count(headers: dict[str, Any] | None, queue_name: str) -> int:
    """
    Number of times a message was rejected from ``queue_name``.

    Reads the broker-maintained ``x-death`` header. Missing or malformed
    metadata counts as a fresh delivery.
    """
    if not headers:
        return 0

    deaths = headers.get("x-death")
    if not isinstance(deaths, list):
        return 0

    for death in deaths:
        if not isinstance(death, dict):
            continue
        if death.get("queue") == queue_name and death.get("reason") == "rejected":
            try:
                return int(death.get("count", 0))
            except (TypeError, ValueError):
                return 0

    return 0


def get_connection(url: str | None = None) -> Connection:
    """Create a (lazy) broker connection from settings."""
    return Connection(
        url or settings.ORDERS_BROKER_URL,
        connect_timeout=getattr(settings, "ORDERS_BROKER_CONNECT_TIMEOUT", 3),
    )


def ping(connection: Connection) -> None:
    """Open the connection once, raising if the broker is unreachable."""
    connection.ensure_connection(max_retries=1)


class EventPublisher:
    """
    Publishes order events onto ``order.events``.

    Messages are persistent JSON. The target queue (and, for enrichment, its
    retry queue) is declared before the first publish so an event is never
    routed to nowhere.

    Usage:
        publisher = EventPublisher(get_connection())
        publisher.publish(ORDER_CREATED, event.to_dict())
    """

    def __init__(self, connection: Connection, topology: Topology | None = None):
        self.connection = connection
        self.topology = topology or Topology.build()

    def publish(self, routing_key: str, payload: dict[str, Any]) -> None:
        declare = self.topology.declarations_for(routing_key)
        with producers[self.connection].acquire(block=True) as producer:
            producer.publish(
                payload,
                exchange=order_events_exchange,
                routing_key=routing_key,
                serializer="json",
                delivery_mode=2,
                declare=declare,
                retry=True,
                retry_policy={"max_retries": 3, "interval_start": 0, "interval_step": 1},
            )
        logger.info(
            f"Published {routing_key}",
            extra={"routing_key": routing_key, "order_id": payload.get("id")},
        )
