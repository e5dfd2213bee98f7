import logging

from django.db import InterfaceError, OperationalError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .exceptions import ErrorCodes

logger = logging.getLogger(__name__)


class GlobalExceptionMiddleware(MiddlewareMixin):
    """
    Last line of defense for non-DRF views under /api/.
    Everything else falls through to Django's own 500 page.
    """
    def process_exception(self, request, exception):
        logger.exception(f"Unhandled exception on {request.method} {request.path}: {exception}")
        if not request.path.startswith('/api/'):
            return None

        if isinstance(exception, (OperationalError, InterfaceError)):
            code, http_status = ErrorCodes.SERVER_UNAVAILABLE, 503
        else:
            code, http_status = ErrorCodes.SERVER_UNEXPECTED, 500

        return JsonResponse(
            {"errors": [{"code": code, "field": None, "params": []}]},
            status=http_status,
        )
