"""URL configuration for the orders app."""

from django.urls import path

from apps.orders.views import OrderCreateView, OrderDetailView

app_name = "orders"

urlpatterns = [
    path("orders", OrderCreateView.as_view(), name="order-create"),
    path("orders/<str:order_id>", OrderDetailView.as_view(), name="order-detail"),
]
