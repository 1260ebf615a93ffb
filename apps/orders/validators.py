"""
Validation for inbound order requests.

Validation never stops at the first problem: every violation is collected
so the caller can fix the whole request in one round trip.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

# Bounds of Order.total_amount (max_digits=12, decimal_places=2).
AMOUNT_DECIMAL_PLACES = 2
MAX_TOTAL_AMOUNT = Decimal(10) ** (12 - AMOUNT_DECIMAL_PLACES)


class Validator:
    """Collects field errors. The first message recorded for a field wins."""

    def __init__(self):
        self.errors: dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def add_error(self, key: str, message: str) -> None:
        self.errors.setdefault(key, message)


@dataclass
class OrderItemRequest:
    sku: str
    qty: int


@dataclass
class OrderRequest:
    """A validated order request, ready to be persisted."""

    customer_id: str
    total_amount: Decimal
    items: list[OrderItemRequest] = field(default_factory=list)


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _fits_amount_column(value: Decimal) -> bool:
    if not value.is_finite():
        return True
    return value < MAX_TOTAL_AMOUNT and value.normalize().as_tuple().exponent >= -AMOUNT_DECIMAL_PLACES


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_order_request(data: Any) -> tuple[OrderRequest | None, dict[str, str]]:
    """
    Validate a decoded JSON order request.

    Args:
        data: The decoded request body.

    Returns:
        ``(request, {})`` when valid, ``(None, errors)`` otherwise.
    """
    v = Validator()

    if not isinstance(data, dict):
        v.add_error("body", "must be a JSON object")
        return None, v.errors

    customer_id = data.get("customer_id")
    v.check(
        isinstance(customer_id, str) and customer_id.strip() != "",
        "customer_id",
        "must be provided",
    )

    total_amount = _to_decimal(data.get("total_amount", 0))
    v.check(
        total_amount is not None and total_amount.is_finite() and total_amount >= 0,
        "total_amount",
        "must be zero or positive",
    )
    v.check(
        total_amount is None or _fits_amount_column(total_amount),
        "total_amount",
        f"must be below {MAX_TOTAL_AMOUNT} with at most {AMOUNT_DECIMAL_PLACES} decimal places",
    )

    raw_items = data.get("items")
    if raw_items is None:
        raw_items = []
    v.check(isinstance(raw_items, list), "items", "must be a list")

    items: list[OrderItemRequest] = []
    if isinstance(raw_items, list):
        for i, item in enumerate(raw_items):
            if not isinstance(item, dict):
                v.add_error(f"items[{i}]", "must be an object")
                continue

            sku = item.get("sku")
            qty = _to_int(item.get("qty"))

            v.check(isinstance(sku, str) and sku.strip() != "", f"items[{i}].sku", "sku must be provided")
            v.check(qty is not None and qty > 0, f"items[{i}].qty", "quantity must be greater than zero")

            if isinstance(sku, str) and qty is not None:
                items.append(OrderItemRequest(sku=sku, qty=qty))

    if not v.valid:
        return None, v.errors

    return OrderRequest(customer_id=customer_id, total_amount=total_amount, items=items), {}
