"""
Infrastructure endpoints that sit outside the business domain.
"""

from __future__ import annotations

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness probe for load balancers and container orchestration.

    The database is required; the cache is reported but never fails the
    check, since django-redis is configured to ignore connection errors.

    Returns:
        200 with {"status": "healthy", "database": ..., "cache": ...}
        503 when the database cannot be reached
    """
    payload = {"status": "healthy", "database": "connected", "cache": "connected"}
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        payload["database"] = "disconnected"
        payload["status"] = "unhealthy"
        status_code = 503

    cache.set("health_check", "ok", timeout=1)
    if cache.get("health_check") != "ok":
        payload["cache"] = "disconnected"

    return JsonResponse(payload, status=status_code)
