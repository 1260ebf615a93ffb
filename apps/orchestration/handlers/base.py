"""Base stage handler for pipeline workers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from apps.orchestration.broker import EventPublisher, Topology
from apps.orchestration.dtos import OrderEvent
from apps.orchestration.signals import PipelineMonitor


class StageHandler(ABC):
    """
    Abstract base class for pipeline stage handlers.

    A handler consumes one decoded event and either returns (the runner
    acknowledges the delivery) or raises (the runner rejects it without
    requeue). Handlers keep no state between deliveries.
    """

    stage: str = "base"
    consumes: str = ""
    publishes: str | None = None
    # Whether a rejected delivery comes back through the retry queue.
    retryable: bool = False

    def __init__(
        self,
        publisher: EventPublisher | None = None,
        monitor: PipelineMonitor | None = None,
    ):
        self.publisher = publisher
        self.monitor = monitor or PipelineMonitor()

    @classmethod
    def from_settings(
        cls,
        publisher: EventPublisher,
        topology: Topology,
        monitor: PipelineMonitor | None = None,
    ) -> "StageHandler":
        """Build the handler from Django settings."""
        return cls(publisher=publisher, monitor=monitor)

    @abstractmethod
    def handle(self, event: OrderEvent, headers: dict[str, Any]) -> None:
        """
        Process one delivery.

        Args:
            event: The decoded order event.
            headers: Transport headers of the delivery (read-only).

        Raises:
            Exception: Any error makes the runner reject the delivery.
        """
        raise NotImplementedError

    def forward(self, event: OrderEvent) -> None:
        """Publish ``event`` to the next stage."""
        if self.publishes is None or self.publisher is None:
            raise RuntimeError(f"Stage {self.stage} has no downstream route")
        self.publisher.publish(self.publishes, event.to_dict())
