import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

logger = structlog.get_logger(__name__)


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _check_database,
    "cache": _check_cache,
}


def _probe(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception:
        logger.exception("health_check.probe_failed", service=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness/readiness probe (200 healthy, 503 otherwise)."""
    services = {name: _probe(name, check) for name, check in PROBES.items()}
    healthy = all(service["status"] == "up" for service in services.values())
    status_label = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=status_label)
    return JsonResponse(
        {
            "status": status_label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Who the API thinks the caller is, and which order scope applies."""

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        return Response(
            {
                "username": request.user.get_username(),
                "scope": "admin" if request.user.is_staff else "owner",
            }
        )
