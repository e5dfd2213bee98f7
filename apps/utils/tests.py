# apps/utils/tests.py
import json
import logging

from django.db import OperationalError
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from .exceptions import BusinessLogicException, ErrorCodes, custom_exception_handler
from .logging import JSONFormatter
from .middleware import GlobalExceptionMiddleware
from .results import OperationError, OperationResult


class OperationResultTests(SimpleTestCase):
    def test_success_carries_value(self):
        result = OperationResult.success(42)
        self.assertTrue(result.succeeded)
        self.assertTrue(result)
        self.assertEqual(result.value, 42)
        self.assertEqual(result.errors, ())

    def test_failure_collects_errors(self):
        result = OperationResult.failures([
            OperationError(ErrorCodes.FLAVOR_OUT_OF_STOCK, "items", ("Cheese", 2)),
            OperationError(ErrorCodes.FLAVOR_OUT_OF_STOCK, "items", ("Meat", 0)),
        ])
        self.assertFalse(result)
        self.assertEqual(len(result.errors), 2)
        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_OUT_OF_STOCK))
        self.assertFalse(result.has_error(ErrorCodes.ORDER_NOT_FOUND))

    def test_error_params_render_as_strings(self):
        error = OperationError(ErrorCodes.INVALID_STATUS_TRANSITION, "target_status", ("PENDING", 3))
        self.assertEqual(
            error.as_dict(),
            {"code": ErrorCodes.INVALID_STATUS_TRANSITION, "field": "target_status", "params": ["PENDING", "3"]},
        )


class ExceptionHandlerTests(SimpleTestCase):
    def test_business_errors_render_as_error_list(self):
        exc = BusinessLogicException([OperationError(ErrorCodes.ORDER_MUST_HAVE_ITEMS, "items")])
        response = custom_exception_handler(exc, {})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data,
            {"errors": [{"code": ErrorCodes.ORDER_MUST_HAVE_ITEMS, "field": "items", "params": []}]},
        )

    def test_not_found_codes_map_to_404(self):
        result = OperationResult.failure(OperationError(ErrorCodes.ORDER_NOT_FOUND, "order_id"))
        exc = BusinessLogicException.from_result(result, not_found_codes=[ErrorCodes.ORDER_NOT_FOUND])
        self.assertEqual(custom_exception_handler(exc, {}).status_code, status.HTTP_404_NOT_FOUND)

    def test_drf_validation_errors_pass_through(self):
        response = custom_exception_handler(ValidationError({"name": ["required"]}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("name", response.data)

    def test_database_outage_is_503(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = custom_exception_handler(OperationalError("connection refused"), {})

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["errors"][0]["code"], ErrorCodes.SERVER_UNAVAILABLE)

    def test_unexpected_error_is_500_without_details(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = custom_exception_handler(RuntimeError("secret internals"), {})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["errors"][0]["code"], ErrorCodes.SERVER_UNEXPECTED)
        self.assertNotIn("secret internals", json.dumps(response.data))

    def test_unexpected_error_is_logged_with_traceback(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR") as logs:
            try:
                raise RuntimeError("fryer on fire")
            except RuntimeError as exc:
                custom_exception_handler(exc, {})

        record = logs.records[0]
        self.assertEqual(record.levelname, "ERROR")
        self.assertIs(record.exc_info[0], RuntimeError)
        self.assertIn("Traceback", logs.output[0])


class GlobalExceptionMiddlewareTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = GlobalExceptionMiddleware(lambda request: None)

    def test_api_paths_get_json_error(self):
        request = self.factory.get("/api/v1/orders/active/")
        with self.assertLogs("apps.utils.middleware", level="ERROR"):
            response = self.middleware.process_exception(request, RuntimeError("boom"))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(response.content)["errors"][0]["code"], ErrorCodes.SERVER_UNEXPECTED)

    def test_database_outage_is_503(self):
        request = self.factory.post("/api/v1/orders/")
        with self.assertLogs("apps.utils.middleware", level="ERROR"):
            response = self.middleware.process_exception(request, OperationalError("gone"))

        self.assertEqual(response.status_code, 503)
        self.assertEqual(json.loads(response.content)["errors"][0]["code"], ErrorCodes.SERVER_UNAVAILABLE)

    def test_other_paths_fall_back_to_django(self):
        request = self.factory.get("/admin/")
        with self.assertLogs("apps.utils.middleware", level="ERROR"):
            self.assertIsNone(self.middleware.process_exception(request, RuntimeError("boom")))


class JSONFormatterTests(SimpleTestCase):
    def _record(self, msg, **extra):
        record = logging.LogRecord("apps.orders", logging.INFO, __file__, 10, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_keys_are_copied(self):
        line = json.loads(JSONFormatter().format(self._record("created", order_id=7, customer_id=3)))

        self.assertEqual(line["msg"], "created")
        self.assertEqual(line["lvl"], "INFO")
        self.assertEqual(line["order_id"], "7")
        self.assertEqual(line["customer_id"], "3")
        self.assertNotIn("flavor_id", line)

    def test_sensitive_keys_are_redacted(self):
        record = self._record({"user": "x", "password": "hunter2", "nested": {"token": "abc"}})
        line = json.loads(JSONFormatter().format(record))

        self.assertNotIn("hunter2", line["msg"])
        self.assertNotIn("abc", line["msg"])
        self.assertIn("***REDACTED***", line["msg"])


class UtilityEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_health_check_reports_database(self):
        response = self.client.get(reverse("health-check"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "databases": {"default": "ok"}})

    def test_server_info(self):
        response = self.client.get(reverse("server-info"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["app_name"], "Pastel Stand")
        self.assertEqual(response.data["version"], "1.0.0")
        self.assertEqual(response.data["max_item_quantity"], 100)
        self.assertIn("server_time", response.data)
