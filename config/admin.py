"""Custom admin site for the order pipeline ops console."""

from datetime import timedelta

from django.contrib.admin import AdminSite
from django.db.models import Count
from django.utils import timezone


class PipelineAdminSite(AdminSite):
    site_header = "Order Pipeline"
    site_title = "Order Pipeline"
    index_title = "Dashboard"
    index_template = "admin/dashboard.html"

    def index(self, request, extra_context=None):
        extra_context = extra_context or {}
        extra_context.update(self._get_dashboard_context())
        return super().index(request, extra_context=extra_context)

    def _get_dashboard_context(self):
        from apps.orders.models import Order, OrderStatus

        now = timezone.now()
        last_24h = now - timedelta(hours=24)

        # --- Pipeline Health (24h) ---
        status_counts = dict(
            Order.objects.filter(created_at__gte=last_24h)
            .order_by()
            .values_list("status")
            .annotate(count=Count("id"))
            .values_list("status", "count")
        )
        total = sum(status_counts.values())
        completed = status_counts.get(OrderStatus.COMPLETED, 0)
        pipeline_health = {
            "total": total,
            "completed": completed,
            "failed": status_counts.get(OrderStatus.FAILED, 0),
            "in_flight": status_counts.get(OrderStatus.PENDING, 0)
            + status_counts.get(OrderStatus.PROCESSING, 0),
            "success_rate": round(completed / total * 100, 1) if total else 0,
        }

        # Processing orders untouched for 10 minutes have probably lost their event.
        stalled_orders = list(
            Order.objects.filter(
                status=OrderStatus.PROCESSING,
                updated_at__lt=now - timedelta(minutes=10),
            )
            .order_by("updated_at")
            .only("id", "customer_id", "updated_at")[:10]
        )

        failed_orders = list(
            Order.objects.filter(status=OrderStatus.FAILED)
            .order_by("-updated_at")
            .only("id", "customer_id", "updated_at")[:5]
        )

        return {
            "pipeline_health": pipeline_health,
            "stalled_orders": stalled_orders,
            "failed_orders": failed_orders,
        }
