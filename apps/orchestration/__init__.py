"""
Pipeline Orchestration app.

Moves an admitted order through a fixed chain of message-driven stages:
order.created → processing → order.enrichment.requested → enrichment
→ order.enriched → finalization

Key concepts:
- One durable direct exchange; one queue per stage; manual acknowledgment
- State machine: PENDING → PROCESSING → COMPLETED (or FAILED)
- Each stage commits its store mutation before publishing the next event
- Enrichment retries through a dead-letter delay queue, counted from x-death
- Monitoring signals at every stage boundary
"""
