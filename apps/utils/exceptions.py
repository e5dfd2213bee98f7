from django.db import InterfaceError, OperationalError
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class ErrorCodes:
    """
    Stable error keys. The frontend owns the human-readable text.
    """
    CUSTOMER_NAME_REQUIRED = "errors.order.customer_name_required"
    CUSTOMER_NOT_FOUND = "errors.customer.not_found"
    CUSTOMER_NAME_MISMATCH = "errors.customer.name_mismatch"
    FLAVOR_NAME_EXISTS = "errors.flavor.name_exists"
    FLAVOR_NAME_REQUIRED = "errors.flavor.name_required"
    FLAVOR_NOT_FOUND = "errors.flavor.not_found"
    FLAVOR_OUT_OF_STOCK = "errors.flavor.out_of_stock"
    FLAVOR_IN_USE = "errors.flavor.in_use"
    INVALID_STATUS_TRANSITION = "errors.order.invalid_status_transition"
    ORDER_ITEM_ALREADY_AT_FINAL_STAGE = "errors.order.item_already_final"
    ORDER_ITEM_ALREADY_COMPLETED = "errors.order.item_completed"
    ORDER_ITEM_NOT_FOUND = "errors.order.item_not_found"
    ORDER_MUST_HAVE_ITEMS = "errors.order.must_have_items"
    ORDER_ITEM_QUANTITY_INVALID = "errors.order.invalid_quantity"
    ORDER_NOT_FOUND = "errors.order.not_found"
    ORDER_CANNOT_BE_CANCELLED = "errors.order.cannot_cancel"

    SERVER_UNAVAILABLE = "errors.server.unavailable"
    SERVER_UNEXPECTED = "errors.server.unexpected"


class BusinessLogicException(Exception):
    """
    Raised at the API boundary when a service returned a failed OperationResult.
    Carries the structured errors and the HTTP status to answer with.
    """
    def __init__(self, errors, http_status=status.HTTP_400_BAD_REQUEST):
        self.errors = tuple(errors)
        self.http_status = http_status
        codes = ", ".join(e.code for e in self.errors)
        super().__init__(codes or "business_error")

    @classmethod
    def from_result(cls, result, not_found_codes=()):
        http_status = (
            status.HTTP_404_NOT_FOUND
            if result.has_error(*not_found_codes)
            else status.HTTP_400_BAD_REQUEST
        )
        return cls(result.errors, http_status=http_status)


def _error_body(code):
    return {"errors": [{"code": code, "field": None, "params": []}]}


def custom_exception_handler(exc, context):
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if isinstance(exc, BusinessLogicException):
        return Response(
            {"errors": [e.as_dict() for e in exc.errors]},
            status=exc.http_status,
        )

    if response is not None:
        return response

    # Store unreachable / connection dropped: the caller may retry.
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.exception(f"Database unavailable: {exc}")
        return Response(
            _error_body(ErrorCodes.SERVER_UNAVAILABLE),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    logger.exception(f"Unhandled Exception: {exc}")
    return Response(
        _error_body(ErrorCodes.SERVER_UNEXPECTED),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
