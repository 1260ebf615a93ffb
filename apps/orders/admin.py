"""Admin configuration for order models."""

from django.contrib import admin
from django_object_actions import DjangoObjectActions
from django_object_actions import action as object_action

from apps.orders.models import (
    IdempotencyKey,
    Order,
    OrderEnrichment,
    OrderItem,
    OrderStatus,
    TransitionOutcome,
)


class OrderItemInline(admin.TabularInline):
    """Read-only line items within an order."""

    model = OrderItem
    extra = 0
    readonly_fields = ["sku", "qty"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class OrderEnrichmentInline(admin.StackedInline):
    model = OrderEnrichment
    extra = 0
    readonly_fields = ["data", "created_at"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(DjangoObjectActions, admin.ModelAdmin):
    """
    Admin for Order.

    Orders are read-only here; status only changes through the pipeline or
    the "Mark Failed" action for orders stuck in processing.
    """

    list_display = ["id", "customer_id", "status", "total_amount", "created_at", "updated_at"]
    list_filter = ["status"]
    search_fields = ["id", "customer_id"]
    readonly_fields = ["id", "customer_id", "status", "total_amount", "created_at", "updated_at"]
    inlines = [OrderItemInline, OrderEnrichmentInline]
    actions = ["mark_failed_selected"]
    change_actions = ["mark_failed"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Mark selected stalled orders as failed")
    def mark_failed_selected(self, request, queryset):
        count = 0
        for order in queryset.filter(status=OrderStatus.PROCESSING):
            if order.mark_failed() is TransitionOutcome.ADVANCED:
                count += 1
        self.message_user(request, f"{count} order(s) marked as failed.")

    @object_action(label="Mark Failed", description="Fail this order (processing only)")
    def mark_failed(self, request, obj):
        if obj.mark_failed() is TransitionOutcome.ADVANCED:
            self.message_user(request, f"Order '{obj.pk}' marked as failed.")
        else:
            self.message_user(
                request,
                f"Can only fail orders in processing (current: {obj.status}).",
                level="warning",
            )


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ["key", "order", "created_at"]
    search_fields = ["key", "order__id"]
    readonly_fields = ["key", "order", "created_at"]

    def has_add_permission(self, request):
        return False
