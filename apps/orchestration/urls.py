"""URL configuration for the orchestration app."""

from django.urls import path

from apps.orchestration.views import LivenessView, ReadinessView

app_name = "orchestration"

urlpatterns = [
    path("healthz", LivenessView.as_view(), name="healthz"),
    path("readyz", ReadinessView.as_view(), name="readyz"),
]
