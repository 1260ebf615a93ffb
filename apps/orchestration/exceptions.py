"""Exceptions raised inside the pipeline workers."""


class StageError(Exception):
    """Base class for failures that make a stage reject its delivery."""


class EventDecodeError(StageError):
    """A delivery body is not a valid order event."""


class EnrichmentError(StageError):
    """The enrichment provider failed; the delivery goes through the retry queue."""

    def __init__(self, order_id, message: str = "Simulated failure."):
        self.order_id = order_id
        super().__init__(f"Enrichment failed for order {order_id}: {message}")
