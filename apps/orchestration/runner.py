"""
Pipeline runner: binds one stage handler to one queue.

The runner owns acknowledgment. Handlers never touch the message:
- handler returns -> ack
- handler raises, or the body cannot be decoded -> reject without requeue

With ``prefetch_count=1`` a runner has at most one delivery in flight. Scale a
stage by starting more runners against the same queue.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.db import close_old_connections
from kombu import Connection, Queue
from kombu.mixins import ConsumerMixin

from apps.orchestration.broker import retry_count
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.exceptions import EventDecodeError
from apps.orchestration.handlers.base import StageHandler
from apps.orchestration.signals import PipelineMonitor, SignalTags, StageTimer

logger = logging.getLogger(__name__)


class PipelineRunner(ConsumerMixin):
    """
    Consume loop for a single stage.

    Usage:
        runner = PipelineRunner(connection, topology.order_created, ProcessingHandler(...))
        runner.start()
        ...
        runner.stop()  # waits for the in-flight delivery
    """

    def __init__(
        self,
        connection: Connection,
        queue: Queue,
        handler: StageHandler,
        monitor: PipelineMonitor | None = None,
        prefetch_count: int = 1,
    ):
        self.connection = connection
        self.queue = queue
        self.handler = handler
        self.monitor = monitor or handler.monitor
        self.prefetch_count = prefetch_count
        self._thread: threading.Thread | None = None

    def get_consumers(self, Consumer, channel):
        return [
            Consumer(
                queues=[self.queue],
                callbacks=[self.on_message],
                on_decode_error=self.on_decode_error,
                accept=["json"],
                prefetch_count=self.prefetch_count,
            )
        ]

    def on_consume_ready(self, connection, channel, consumers, **kwargs):
        logger.info(f"Waiting for messages on {self.queue.name} ({self.handler.stage})")

    def on_decode_error(self, message, exc: Exception) -> None:
        logger.error(
            f"Undecodable message on {self.queue.name}: {exc}",
            extra={"stage": self.handler.stage},
        )
        message.reject(requeue=False)

    def on_message(self, body: Any, message) -> None:
        """Dispatch one delivery to the handler and settle it."""
        headers = dict(message.headers or {})

        try:
            event = OrderEvent.from_dict(body)
        except EventDecodeError as e:
            logger.error(
                f"Error handling message on {self.queue.name}: {e}",
                extra={"stage": self.handler.stage},
            )
            message.reject(requeue=False)
            return

        tags = SignalTags(
            order_id=event.id,
            stage=self.handler.stage,
            attempt=retry_count(headers, self.queue.name) + 1,
            customer_id=event.customer_id,
        )

        # Long-lived worker thread: drop connections the database has closed.
        close_old_connections()
        try:
            with StageTimer(self.monitor, tags, retryable=self.handler.retryable):
                self.handler.handle(event, headers)
        except Exception as e:
            logger.error(
                f"Error handling message for order {event.id}: {e}",
                exc_info=not self.handler.retryable,
                extra={"order_id": event.id, "stage": self.handler.stage},
            )
            message.reject(requeue=False)
            return
        finally:
            close_old_connections()

        message.ack()

    def start(self) -> threading.Thread:
        """Run the consume loop on a dedicated thread."""
        self._thread = threading.Thread(
            target=self.run,
            name=f"pipeline-runner-{self.handler.stage}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """
        Stop accepting deliveries and wait for the current one to finish.

        There is no timeout: a handler that hangs blocks shutdown.
        """
        logger.info(f"Shutting down {self.handler.stage} worker...")
        self.should_stop = True
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.info(f"{self.handler.stage} worker shutdown complete.")
