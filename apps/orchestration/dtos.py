"""
Data Transfer Objects (DTOs) for the pipeline event contract.

Every route (order.created, order.enrichment.requested, order.enriched)
carries the same JSON document: the serialized order. Only ``status`` differs
between hops.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from apps.orchestration.exceptions import EventDecodeError


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class OrderItemEvent:
    sku: str
    qty: int
    id: int | None = None
    order_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OrderEvent:
    """
    Wire representation of an order.

    Output:
    - id: Order UUID (string form)
    - customer_id, status, total_amount
    - created_at / updated_at: ISO-8601 timestamps
    - items: line items in creation order
    """

    id: str
    customer_id: str
    status: str
    total_amount: float = 0.0
    created_at: str | None = None
    updated_at: str | None = None
    items: list[OrderItemEvent] = field(default_factory=list)

    @property
    def order_id(self) -> uuid.UUID:
        return uuid.UUID(self.id)

    @classmethod
    def from_order(cls, order) -> "OrderEvent":
        """Build an event from an ``apps.orders.models.Order`` instance."""
        return cls(
            id=str(order.pk),
            customer_id=order.customer_id,
            status=order.status,
            total_amount=float(order.total_amount),
            created_at=_isoformat(order.created_at),
            updated_at=_isoformat(order.updated_at),
            items=[
                OrderItemEvent(id=item.pk, order_id=str(order.pk), sku=item.sku, qty=item.qty)
                for item in order.items.all()
            ],
        )

    @classmethod
    def from_dict(cls, data: Any) -> "OrderEvent":
        """
        Decode an event body.

        Raises:
            EventDecodeError: If the body does not describe an order.
        """
        if not isinstance(data, dict):
            raise EventDecodeError(f"Event body must be a JSON object, got {type(data).__name__}")

        try:
            order_id = str(uuid.UUID(str(data["id"])))
            customer_id = data["customer_id"]
            status = data["status"]
        except (KeyError, ValueError) as e:
            raise EventDecodeError(f"Invalid order event: {e!r}") from e

        if not isinstance(customer_id, str) or not isinstance(status, str):
            raise EventDecodeError("Invalid order event: customer_id and status must be strings")

        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise EventDecodeError("Invalid order event: items must be a list")

        try:
            items = [
                OrderItemEvent(
                    id=item.get("id"),
                    order_id=item.get("order_id"),
                    sku=item["sku"],
                    qty=int(item["qty"]),
                )
                for item in raw_items
            ]
            total_amount = float(data.get("total_amount") or 0)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise EventDecodeError(f"Invalid order event: {e!r}") from e

        return cls(
            id=order_id,
            customer_id=customer_id,
            status=status,
            total_amount=total_amount,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            items=items,
        )

    def with_status(self, status: str) -> "OrderEvent":
        """Copy of this event carrying a new status."""
        data = self.to_dict()
        data["status"] = status
        return OrderEvent.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
