import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness plus a round trip to every configured database.
    503 as soon as one of them does not answer.
    """
    components = {}
    for alias in connections:
        try:
            with connections[alias].cursor() as cursor:
                cursor.execute("SELECT 1")
            components[alias] = "ok"
        except DatabaseError as e:
            logger.warning(f"Health check failed for database '{alias}': {e}")
            components[alias] = "error"

    healthy = all(state == "ok" for state in components.values())
    return JsonResponse(
        {"status": "ok" if healthy else "error", "databases": components},
        status=200 if healthy else 503,
    )
