import json
import uuid
from unittest.mock import Mock, patch

from django.core.cache import caches
from django.test import Client, TestCase, override_settings

from apps.orders.models import Order, OrderItem, OrderStatus


@override_settings(ORDERS_AUTH_TOKEN="")
class OrderCreateViewTests(TestCase):
    """Tests for POST /orders."""

    def setUp(self):
        self.client = Client()
        self.publisher = Mock(spec=["publish"])
        patcher = patch("apps.orders.views.get_event_publisher", return_value=self.publisher)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.body = {"customer_id": "cust-1", "total_amount": 10.0, "items": [{"sku": "X", "qty": 2}]}

    def post(self, body, token="token-1", **extra):
        if token is not None:
            extra["HTTP_X_IDEMPOTENCY_KEY"] = token
        return self.client.post(
            "/orders",
            data=body if isinstance(body, (str, bytes)) else json.dumps(body),
            content_type="application/json",
            **extra,
        )

    def test_create_returns_201(self):
        response = self.post(self.body)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["message"] == "Order created successfully"
        assert Order.objects.filter(pk=data["order_id"]).exists()
        self.publisher.publish.assert_called_once()

    def test_replay_returns_200_with_same_order(self):
        created = self.post(self.body).json()["data"]["order_id"]

        response = self.post(self.body)

        assert response.status_code == 200
        assert response.json() == {"order_id": created, "message": "Order already exists."}
        assert Order.objects.count() == 1

    def test_missing_idempotency_header_returns_400(self):
        response = self.post(self.body, token=None)

        assert response.status_code == 400
        assert response.json()["error"] == "Header X-Idempotency-Key empty"
        assert Order.objects.count() == 0

    def test_invalid_json_returns_400(self):
        response = self.post("{not json")

        assert response.status_code == 400
        assert "Invalid JSON" in response.json()["error"]

    def test_non_utf8_body_returns_400(self):
        response = self.post(b"\xff\xfe{")

        assert response.status_code == 400
        assert "Invalid JSON" in response.json()["error"]
        assert Order.objects.count() == 0

    def test_validation_errors_returned_together(self):
        response = self.post({"customer_id": "", "total_amount": -1, "items": [{"sku": "", "qty": 0}]})

        assert response.status_code == 400
        errors = response.json()["error"]
        assert set(errors) == {"customer_id", "total_amount", "items[0].sku", "items[0].qty"}

    def test_publish_failure_returns_500(self):
        self.publisher.publish.side_effect = ConnectionError("broker down")

        response = self.post(self.body)

        assert response.status_code == 500
        assert "order.created" in response.json()["error"]

    def test_get_not_allowed(self):
        response = self.client.get("/orders")

        assert response.status_code == 405


@override_settings(ORDERS_AUTH_TOKEN="s3cret")
class OrderCreateAuthTests(TestCase):
    def setUp(self):
        self.client = Client()
        patcher = patch("apps.orders.views.get_event_publisher", return_value=Mock(spec=["publish"]))
        patcher.start()
        self.addCleanup(patcher.stop)

    def post(self, **extra):
        return self.client.post(
            "/orders",
            data=json.dumps({"customer_id": "c1", "items": []}),
            content_type="application/json",
            HTTP_X_IDEMPOTENCY_KEY="token-1",
            **extra,
        )

    def test_missing_authorization_returns_401(self):
        response = self.post()

        assert response.status_code == 401
        assert Order.objects.count() == 0

    def test_malformed_authorization_returns_401(self):
        assert self.post(HTTP_AUTHORIZATION="Token s3cret").status_code == 401
        assert self.post(HTTP_AUTHORIZATION="Bearer").status_code == 401

    def test_wrong_token_returns_401(self):
        response = self.post(HTTP_AUTHORIZATION="Bearer nope")

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"

    def test_valid_token_admits_order(self):
        response = self.post(HTTP_AUTHORIZATION="Bearer s3cret")

        assert response.status_code == 201


class OrderDetailViewTests(TestCase):
    """Tests for GET /orders/<id>."""

    def setUp(self):
        self.client = Client()
        caches["default"].clear()
        self.order = Order.objects.create(customer_id="cust-1", total_amount=10)
        OrderItem.objects.create(order=self.order, sku="X", qty=2)

    def tearDown(self):
        caches["default"].clear()

    def test_miss_then_hit(self):
        first = self.client.get(f"/orders/{self.order.pk}")
        second = self.client.get(f"/orders/{self.order.pk}")

        assert first.status_code == 200
        assert first["X-Cache"] == "MISS"
        assert second["X-Cache"] == "HIT"
        assert first.json() == second.json()

    def test_response_shape(self):
        data = self.client.get(f"/orders/{self.order.pk}").json()["data"]

        assert data["order"]["id"] == str(self.order.pk)
        assert data["order"]["status"] == OrderStatus.PENDING
        assert data["order"]["items"] == [
            {"sku": "X", "qty": 2, "id": self.order.items.get().pk, "order_id": str(self.order.pk)}
        ]
        assert data["order_enriched"] is None

    def test_invalid_id_returns_400(self):
        response = self.client.get("/orders/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid order ID"

    def test_unknown_order_returns_404(self):
        response = self.client.get(f"/orders/{uuid.uuid4()}")

        assert response.status_code == 404

    def test_cache_failure_returns_500(self):
        broken = Mock()
        broken.get.side_effect = ConnectionError("redis down")

        with patch("apps.orders.views.caches", {"default": broken}):
            response = self.client.get(f"/orders/{self.order.pk}")

        assert response.status_code == 500
