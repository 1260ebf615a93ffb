"""
HTTP entry points for orders.

POST /orders        admit an order (requires X-Idempotency-Key)
GET  /orders/<id>   read an order through the cache
"""

import json
import logging
import uuid
from functools import lru_cache
from typing import Any

from django.core.cache import caches
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.orchestration.broker import EventPublisher, get_connection
from apps.orders.auth import require_bearer_token
from apps.orders.exceptions import CacheError, EventPublishError, MissingIdempotencyKey
from apps.orders.models import Order
from apps.orders.services import (
    AdmissionOutcome,
    OrderIngestionGate,
    OrderReadService,
    ReadSource,
)

logger = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "X-Idempotency-Key"


@lru_cache(maxsize=1)
def get_event_publisher() -> EventPublisher:
    """Process-wide publisher; kombu's producer pool handles concurrency."""
    return EventPublisher(get_connection())


class JSONResponseMixin:
    """Mixin for JSON responses."""

    def json_response(self, data: Any, status: int = 200) -> JsonResponse:
        return JsonResponse(data, status=status)

    def error_response(self, message: Any, status: int = 400) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)


@method_decorator(csrf_exempt, name="dispatch")
class OrderCreateView(JSONResponseMixin, View):
    """
    API endpoint for admitting orders.

    POST /orders
    Headers:
        X-Idempotency-Key: required, one per logical order
    Request body:
    {
        "customer_id": "cust-1",
        "total_amount": 10.0,
        "items": [{"sku": "X", "qty": 2}]
    }
    """

    @require_bearer_token
    def post(self, request):
        try:
            body = json.loads(request.body) if request.body else {}
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            return self.error_response(f"Invalid JSON body: {e}", status=400)

        token = request.headers.get(IDEMPOTENCY_HEADER, "")
        gate = OrderIngestionGate(publisher=get_event_publisher())

        try:
            result = gate.admit(token, body)
        except MissingIdempotencyKey as e:
            return self.error_response(str(e), status=400)
        except EventPublishError as e:
            return self.error_response(str(e), status=500)
        except Exception as e:
            logger.exception("Unexpected error admitting order")
            return self.error_response(str(e), status=500)

        if result.outcome is AdmissionOutcome.INVALID:
            return self.error_response(result.errors, status=400)

        if result.outcome is AdmissionOutcome.ALREADY_EXISTS:
            return self.json_response(
                {"order_id": str(result.order_id), "message": "Order already exists."}
            )

        return self.json_response(
            {"data": {"order_id": str(result.order_id), "message": "Order created successfully"}},
            status=201,
        )


class OrderDetailView(JSONResponseMixin, View):
    """
    API endpoint for reading an order.

    GET /orders/<order_id>
        Returns {"data": {"order": ..., "order_enriched": ...}} with an
        X-Cache: HIT|MISS header.
    """

    def get(self, request, order_id: str):
        try:
            parsed_id = uuid.UUID(order_id)
        except ValueError:
            return self.error_response("Invalid order ID", status=400)

        service = OrderReadService(cache=caches["default"])

        try:
            view, source = service.get_order(parsed_id)
        except Order.DoesNotExist:
            return self.error_response(f"Order not found: {order_id}", status=404)
        except CacheError as e:
            return self.error_response(str(e), status=500)

        response = HttpResponse(
            '{"data": ' + view + "}",
            content_type="application/json",
        )
        response["X-Cache"] = "HIT" if source is ReadSource.CACHE else "MISS"
        return response
