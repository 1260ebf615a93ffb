"""Tests for pipeline monitoring signals."""

from unittest.mock import patch

import pytest
from django.test import TestCase

from apps.orchestration.signals import (
    LoggingBackend,
    SignalTags,
    StageTimer,
    get_monitoring_backend,
)


class SignalTagsTests(TestCase):
    """Test signal tags."""

    def test_signal_tags_to_dict(self):
        """Test SignalTags serialization."""
        tags = SignalTags(
            order_id="order-123",
            stage="enrichment",
            attempt=2,
            customer_id="cust-1",
            extra={"custom": "value"},
        )
        data = tags.to_dict()
        assert data["order_id"] == "order-123"
        assert data["stage"] == "enrichment"
        assert data["attempt"] == 2
        assert data["custom"] == "value"


def test_unknown_backend_falls_back_to_logging():
    assert isinstance(get_monitoring_backend("nonexistent"), LoggingBackend)


def test_logging_backend_emits_signal_data():
    tags = SignalTags(order_id="o1", stage="processing")

    with patch("apps.orchestration.signals.logger") as logger:
        LoggingBackend().emit("pipeline.stage.started", tags)

    data = logger.info.call_args.kwargs["extra"]["signal_data"]
    assert data["signal"] == "pipeline.stage.started"
    assert data["order_id"] == "o1"


def test_stage_timer_success(monitor, backend):
    tags = SignalTags(order_id="o1", stage="processing")

    with StageTimer(monitor, tags) as timer:
        pass

    assert backend.names() == [
        "pipeline.stage.started",
        "pipeline.stage.succeeded",
        "pipeline.stage.duration",
    ]
    assert timer.duration_ms >= 0


def test_stage_timer_failure_does_not_swallow(monitor, backend):
    tags = SignalTags(order_id="o1", stage="enrichment")

    with pytest.raises(RuntimeError):
        with StageTimer(monitor, tags, retryable=True):
            raise RuntimeError("boom")

    failed = backend.signals[1]
    assert failed[0] == "pipeline.stage.failed"
    assert failed[3]["error_type"] == "RuntimeError"
    assert failed[3]["retryable"] is True
