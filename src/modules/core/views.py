import time
from typing import Any, Callable, Dict, Tuple

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from shared.infrastructure.storage import get_blob_store

logger = structlog.get_logger()


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


def _check_blob_store() -> None:
    get_blob_store().ping()


# Each check raises when its dependency is down.
HEALTH_CHECKS: Tuple[Tuple[str, Callable[[], None]], ...] = (
    ("database", _check_database),
    ("cache", _check_cache),
    ("blob_store", _check_blob_store),
)


def _run_check(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception as exc:
        logger.error("health_check_failure", service=name, error=str(exc))
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness check covering every backing service in ``HEALTH_CHECKS``."""
    services = {name: _run_check(name, check) for name, check in HEALTH_CHECKS}
    overall_healthy = all(s["status"] == "up" for s in services.values())

    logger.info(
        "health_check_completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )


class MeView(APIView):
    """Return the identity resolved by the Auth Gate.

    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200 with the caller's id and email
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        user = request.user
        return Response(
            {
                "message": "authenticated",
                "user_id": user.id,
                "email": user.email,
            }
        )
