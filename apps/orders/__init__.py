"""
Orders app.

Owns the durable records of the order pipeline and its two synchronous
entry points:
- Ingestion gate: idempotent admission of new orders (publishes ``order.created``)
- Read path: cache-aside order lookups

Status is advanced by the stage workers in apps.orchestration; this app never
mutates an order after admission except through ``Order.advance_status``.
"""
