"""
Management command to monitor orders moving through the pipeline.

Usage:
    # List recent orders
    python manage.py monitor_orders --limit 10

    # Filter by status
    python manage.py monitor_orders --status failed

    # Show details for a specific order
    python manage.py monitor_orders --order-id <uuid>
"""

import uuid

from django.core.management.base import BaseCommand
from django.db.models import Count

from apps.orders.models import Order, OrderEnrichment, OrderStatus


class Command(BaseCommand):
    help = "Monitor orders: list, filter, and show details."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=10,
            help="Number of orders to show (default: 10)",
        )
        parser.add_argument(
            "--status",
            type=str,
            choices=OrderStatus.values,
            help="Filter by order status",
        )
        parser.add_argument(
            "--order-id",
            type=str,
            help="Show details for a specific order",
        )

    def handle(self, *args, **options):
        order_id = options.get("order_id")
        if order_id:
            self.show_order_details(order_id)
        else:
            self.list_orders(options.get("status"), options.get("limit"))

    def list_orders(self, status, limit):
        counts = dict(Order.objects.order_by().values_list("status").annotate(count=Count("id")))
        summary = "  ".join(f"{s}={counts.get(s, 0)}" for s in OrderStatus.values)
        self.stdout.write(self.style.HTTP_INFO(summary))

        qs = Order.objects.all()
        if status:
            qs = qs.filter(status=status)
        qs = qs.order_by("-created_at")[:limit]

        if not qs:
            self.stdout.write(self.style.WARNING("No orders found."))
            return

        self.stdout.write(f"{'Order ID':<38} {'Status':<12} {'Customer':<20} {'Total':>10} {'Updated':<20}")
        self.stdout.write("-" * 104)
        for order in qs:
            self.stdout.write(
                f"{str(order.id):<38} {order.status:<12} {order.customer_id[:20]:<20} "
                f"{order.total_amount:>10} {order.updated_at:%Y-%m-%d %H:%M:%S}"
            )

    def show_order_details(self, order_id):
        try:
            order = Order.objects.prefetch_related("items").get(pk=uuid.UUID(order_id))
        except (ValueError, Order.DoesNotExist):
            self.stdout.write(self.style.ERROR(f"Order not found: {order_id}"))
            return

        self.stdout.write(self.style.HTTP_INFO(f"Order: {order.id}"))
        self.stdout.write(f"  Status: {order.status}")
        self.stdout.write(f"  Customer: {order.customer_id}")
        self.stdout.write(f"  Total: {order.total_amount}")
        self.stdout.write(f"  Created: {order.created_at:%Y-%m-%d %H:%M:%S}")
        self.stdout.write(f"  Updated: {order.updated_at:%Y-%m-%d %H:%M:%S}")
        self.stdout.write("")
        self.stdout.write("Items:")
        for item in order.items.all():
            self.stdout.write(f"  - {item.sku:<20} qty={item.qty}")

        enrichment = OrderEnrichment.objects.filter(order=order).first()
        if enrichment is not None:
            self.stdout.write(f"Enrichment: {enrichment.data} ({enrichment.created_at:%Y-%m-%d %H:%M:%S})")
        elif order.status == OrderStatus.FAILED:
            self.stdout.write(self.style.ERROR("Enrichment: failed after retries"))
        self.stdout.write("")
