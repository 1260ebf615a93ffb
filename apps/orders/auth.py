"""Bearer-token guard for write endpoints."""

from __future__ import annotations

import hmac
from functools import wraps

from django.conf import settings
from django.http import JsonResponse


def require_bearer_token(view_method):
    """
    Reject requests without ``Authorization: Bearer <ORDERS_AUTH_TOKEN>``.

    Auth is disabled when ``ORDERS_AUTH_TOKEN`` is empty.
    """

    @wraps(view_method)
    def wrapper(self, request, *args, **kwargs):
        secret = (getattr(settings, "ORDERS_AUTH_TOKEN", "") or "").strip()
        if not secret:
            return view_method(self, request, *args, **kwargs)

        header = request.headers.get("Authorization", "")
        if not header:
            return JsonResponse({"error": "Authorization header required"}, status=401)

        parts = header.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            return JsonResponse({"error": "Invalid Authorization header format"}, status=401)

        if not hmac.compare_digest(parts[1], secret):
            return JsonResponse({"error": "Invalid token"}, status=401)

        return view_method(self, request, *args, **kwargs)

    return wrapper
