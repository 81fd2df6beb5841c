import logging
import time

from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.db.utils import OperationalError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger("eventflow.core")


def _database_ok():
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
    except OperationalError as e:
        logger.error(f"Health check: database unreachable: {e}")
        return False
    return True


def _cache_ok():
    # Throttle counters live here; a dead cache means unthrottled endpoints
    try:
        cache.set("eventflow:health", "1", timeout=5)
        return cache.get("eventflow:health") == "1"
    except Exception as e:
        logger.error(f"Health check: cache unreachable: {e}")
        return False


class HealthCheckView(APIView):
    """
    GET /api/health/

    Public uptime probe. 503 when storage or cache is unreachable so load
    balancers stop routing to this instance.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        started = time.monotonic()
        checks = {"db": _database_ok(), "cache": _cache_ok()}
        healthy = all(checks.values())

        return Response(
            {
                "status": "ok" if healthy else "degraded",
                **checks,
                "env": getattr(settings, "ENV", "unknown"),
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
            status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
