"""
Monitoring signals for the order pipeline.

Emits structured signals at every stage boundary:
- pipeline.stage.started
- pipeline.stage.succeeded
- pipeline.stage.failed (with retryable flag)
- pipeline.stage.retrying (enrichment delivery handed to the retry queue)
- pipeline.stage.exhausted (enrichment gave up, order marked failed)
- pipeline.stage.duration (stage timing)

Minimum tags/fields on every signal:
- order_id
- stage (processing|enrichment|finalization)
- attempt (1-based delivery attempt)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

logger = logging.getLogger("apps.orchestration.signals")


@dataclass
class SignalTags:
    """Required tags for all monitoring signals."""

    order_id: str
    stage: str
    attempt: int = 1
    customer_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        base = {
            "order_id": self.order_id,
            "stage": self.stage,
            "attempt": self.attempt,
            "customer_id": self.customer_id,
        }
        base.update(self.extra)
        return base


class MonitoringBackend:
    """
    Abstract monitoring backend.

    Override emit() to send signals to your preferred monitoring system.
    """

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Emit a monitoring signal."""
        raise NotImplementedError


class LoggingBackend(MonitoringBackend):
    """Default backend: structured logging."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data = {
            "signal": signal_name,
            "value": value,
            **tags.to_dict(),
            **(extra or {}),
        }
        logger.info(f"[SIGNAL] {signal_name}", extra={"signal_data": data})


BACKENDS: dict[str, type[MonitoringBackend]] = {
    "logging": LoggingBackend,
}


def get_monitoring_backend(name: str | None = None) -> MonitoringBackend:
    """Get the configured monitoring backend."""
    backend_name = name or getattr(settings, "ORCHESTRATION_METRICS_BACKEND", "logging")
    backend_cls = BACKENDS.get(backend_name)
    if backend_cls is None:
        logger.warning(f"Unknown metrics backend {backend_name!r}, using logging")
        backend_cls = LoggingBackend
    return backend_cls()


class PipelineMonitor:
    """Stage-boundary signals, emitted through one backend."""

    def __init__(self, backend: MonitoringBackend | None = None):
        self.backend = backend or get_monitoring_backend()

    def stage_started(self, tags: SignalTags) -> None:
        self.backend.emit("pipeline.stage.started", tags)

    def stage_succeeded(self, tags: SignalTags, duration_ms: float) -> None:
        self.backend.emit("pipeline.stage.succeeded", tags, extra={"duration_ms": duration_ms})
        self.backend.emit("pipeline.stage.duration", tags, value=duration_ms)

    def stage_failed(
        self,
        tags: SignalTags,
        error_type: str,
        error_message: str,
        retryable: bool,
        duration_ms: float,
    ) -> None:
        self.backend.emit(
            "pipeline.stage.failed",
            tags,
            extra={
                "error_type": error_type,
                "error_message": error_message,
                "retryable": retryable,
                "duration_ms": duration_ms,
            },
        )
        self.backend.emit("pipeline.stage.duration", tags, value=duration_ms)

    def stage_retrying(self, tags: SignalTags) -> None:
        self.backend.emit("pipeline.stage.retrying", tags)

    def stage_exhausted(self, tags: SignalTags, max_retries: int) -> None:
        self.backend.emit("pipeline.stage.exhausted", tags, extra={"max_retries": max_retries})


class StageTimer:
    """Context manager for timing one delivery through a stage."""

    def __init__(self, monitor: PipelineMonitor, tags: SignalTags, retryable: bool = False):
        self.monitor = monitor
        self.tags = tags
        self.retryable = retryable
        self.start_time: float = 0.0
        self.duration_ms: float = 0.0

    def __enter__(self) -> "StageTimer":
        self.start_time = time.perf_counter()
        self.monitor.stage_started(self.tags)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is None:
            self.monitor.stage_succeeded(self.tags, self.duration_ms)
        else:
            self.monitor.stage_failed(
                self.tags,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                retryable=self.retryable,
                duration_ms=self.duration_ms,
            )
        # Don't suppress exceptions
        return False
