from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.orders.models import IdempotencyKey, Order, OrderStatus


class PurgeIdempotencyKeysTaskTests(TestCase):
    def setUp(self):
        order = Order.objects.create(customer_id="cust-1")
        IdempotencyKey.objects.create(key="old", order=order)
        IdempotencyKey.objects.create(key="new", order=order)
        IdempotencyKey.objects.filter(pk="old").update(created_at=timezone.now() - timedelta(days=10))

    def test_task_returns_deleted_count(self):
        from apps.orders.tasks import purge_idempotency_keys

        result = purge_idempotency_keys.apply(kwargs={"retention_days": 7}).get()

        assert result == {"deleted": 1}
        assert IdempotencyKey.objects.filter(pk="old").count() == 0

    def test_command_purges_with_days(self):
        out = StringIO()

        call_command("purge_idempotency_keys", "--days", "7", stdout=out)

        assert "Deleted 1" in out.getvalue()
        assert IdempotencyKey.objects.count() == 1

    @override_settings(ORDERS_IDEMPOTENCY_KEY_RETENTION_DAYS=None)
    def test_command_without_retention_deletes_nothing(self):
        out = StringIO()

        call_command("purge_idempotency_keys", stdout=out)

        assert "No idempotency keys deleted" in out.getvalue()
        assert IdempotencyKey.objects.count() == 2


class MonitorOrdersCommandTests(TestCase):
    def setUp(self):
        self.pending = Order.objects.create(customer_id="cust-1")
        self.failed = Order.objects.create(customer_id="cust-2", status=OrderStatus.FAILED)

    def test_summary_lists_orders(self):
        out = StringIO()

        call_command("monitor_orders", stdout=out)

        output = out.getvalue()
        assert str(self.pending.pk) in output
        assert str(self.failed.pk) in output

    def test_status_filter(self):
        out = StringIO()

        call_command("monitor_orders", "--status", "failed", stdout=out)

        output = out.getvalue()
        assert str(self.failed.pk) in output
        assert str(self.pending.pk) not in output

    def test_order_details(self):
        out = StringIO()

        call_command("monitor_orders", "--order-id", str(self.pending.pk), stdout=out)

        assert "cust-1" in out.getvalue()
