"""Celery tasks for order housekeeping."""

from __future__ import annotations

from typing import Any

from celery import shared_task


@shared_task(bind=True)
def purge_idempotency_keys(self, retention_days: int | None = None) -> dict[str, Any]:
    """
    Celery task to delete expired idempotency keys.

    Scheduled by Celery beat when ORDERS_IDEMPOTENCY_KEY_RETENTION_DAYS is set.

    Args:
        retention_days: Override the retention window from settings.

    Returns:
        Dict with the number of keys deleted.
    """
    from apps.orders.services import purge_idempotency_keys as purge

    deleted = purge(retention_days=retention_days)
    return {"deleted": deleted}
