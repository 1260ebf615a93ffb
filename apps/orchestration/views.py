"""
Liveness and readiness endpoints.

GET /healthz  the process is up
GET /readyz   store, broker and cache are all reachable
"""

import logging
from typing import Any, Callable

from django.core.cache import caches
from django.db import connection as db_connection
from django.http import JsonResponse
from django.views import View

from apps.orchestration.broker import get_connection, ping

logger = logging.getLogger(__name__)


class JSONResponseMixin:
    """Mixin for JSON responses."""

    def json_response(self, data: Any, status: int = 200) -> JsonResponse:
        return JsonResponse(data, status=status)

    def error_response(self, message: str, status: int = 400) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)


def check_database() -> None:
    db_connection.ensure_connection()
    with db_connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def check_broker() -> None:
    with get_connection() as conn:
        ping(conn)


def check_cache() -> None:
    caches["default"].get("readyz:ping")


READINESS_CHECKS: list[tuple[str, str, Callable[[], None]]] = [
    ("database", "Database not ready", check_database),
    ("broker", "Broker not ready", check_broker),
    ("cache", "Cache not ready", check_cache),
]


class LivenessView(JSONResponseMixin, View):
    """GET /healthz"""

    def get(self, request):
        return self.json_response({"status": "alive"})


class ReadinessView(JSONResponseMixin, View):
    """GET /readyz"""

    def get(self, request):
        for name, message, check in READINESS_CHECKS:
            try:
                check()
            except Exception as e:
                logger.error(f"Readiness check failed: {name}: {e}")
                return self.error_response(message, status=503)
        return self.json_response({"status": "ready"})
