"""Exceptions raised by the orders app."""


class OrderError(Exception):
    """Base class for order ingestion and read-path errors."""


class MissingIdempotencyKey(OrderError):
    """The caller did not supply an idempotency token."""

    def __init__(self, message: str = "Header X-Idempotency-Key empty"):
        super().__init__(message)


class EventPublishError(OrderError):
    """The order was stored but its pipeline event could not be published."""

    def __init__(self, order_id, routing_key: str, cause: Exception | None = None):
        self.order_id = order_id
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish {routing_key} for order {order_id}: {cause}")


class CacheError(OrderError):
    """The cache could not be read."""
