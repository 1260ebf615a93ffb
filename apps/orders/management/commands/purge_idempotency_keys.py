"""
Management command to purge old idempotency keys.

Usage:
    python manage.py purge_idempotency_keys --days 30
"""

from django.core.management.base import BaseCommand

from apps.orders.services import purge_idempotency_keys


class Command(BaseCommand):
    help = "Delete idempotency keys older than the retention window."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            help="Retention in days (default: ORDERS_IDEMPOTENCY_KEY_RETENTION_DAYS)",
        )

    def handle(self, *args, **options):
        deleted = purge_idempotency_keys(retention_days=options.get("days"))
        if deleted:
            self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} idempotency key(s)."))
        else:
            self.stdout.write(self.style.WARNING("No idempotency keys deleted."))
