"""
Health Check Module.

``/health/`` answers while the process serves requests. ``/health/ready/``
also checks the database and, unless tasks run eagerly, the Celery broker
used for notification e-mails.
"""
import logging
import time
from typing import Callable, Dict, Any
from datetime import datetime, timezone

from django.db import connection, DatabaseError
from django.conf import settings
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


def _timed(name: str, check: Callable[[], None], errors: tuple) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except errors as e:
        logger.error(f"Readiness check '{name}' failed: {e}")
        return {"name": name, "status": UNHEALTHY, "error": str(e)}
    return {
        "name": name,
        "status": HEALTHY,
        "latency_ms": round((time.monotonic() - start) * 1000, 2),
    }


def check_database() -> Dict[str, Any]:
    def ping():
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()

    return _timed("database", ping, (DatabaseError,))


def check_broker() -> Dict[str, Any]:
    from kombu.exceptions import OperationalError
    from config.celery import app

    def ping():
        with app.connection_for_write() as conn:
            conn.ensure_connection(max_retries=1)

    return _timed("broker", ping, (OperationalError, OSError))


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    return Response({
        "status": HEALTHY,
        "service": settings.SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def readiness_check(request):
    """Returns 503 when a dependency is unreachable."""
    checks = [check_database()]
    if not getattr(settings, 'CELERY_TASK_ALWAYS_EAGER', False):
        checks.append(check_broker())
    healthy = all(c["status"] == HEALTHY for c in checks)

    return Response(
        {
            "status": HEALTHY if healthy else UNHEALTHY,
            "service": settings.SERVICE_NAME,
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        status=200 if healthy else 503
    )


def get_health_urlpatterns():
    from django.urls import path

    return [
        path('health/', health_check, name='health'),
        path('health/ready/', readiness_check, name='readiness'),
    ]
