from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from apps.utils.exceptions import ErrorCodes

from .models import Customer
from .services import CustomerService


class CustomerServiceTests(TestCase):
    def test_register_trims_name(self):
        result = CustomerService.register_customer("  Ana  ")
        self.assertTrue(result.succeeded)
        self.assertEqual(result.value.name, "Ana")
        self.assertFalse(result.value.is_volunteer)

    def test_register_requires_name(self):
        result = CustomerService.register_customer("   ")
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NAME_REQUIRED))
        self.assertFalse(Customer.objects.exists())

    def test_get_customer_hides_volunteers(self):
        volunteer = Customer.objects.create(name="Kitchen", is_volunteer=True)
        self.assertIsNone(CustomerService.get_customer(volunteer.id))

    def test_confirm_fixes_casing(self):
        customer = Customer.objects.create(name="ana")

        result = CustomerService.confirm_customer(customer.id, "Ana")

        self.assertTrue(result.succeeded)
        customer.refresh_from_db()
        self.assertEqual(customer.name, "Ana")

    def test_confirm_name_mismatch(self):
        customer = Customer.objects.create(name="Ana")
        result = CustomerService.confirm_customer(customer.id, "Bia")
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NAME_MISMATCH))

    def test_confirm_unknown_customer(self):
        result = CustomerService.confirm_customer(999, "Ana")
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NOT_FOUND))


class CustomerApiTests(APITestCase):
    def test_register_and_fetch(self):
        resp = self.client.post(reverse("customer-register"), {"name": "Ana"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        customer_id = resp.data["id"]
        resp = self.client.get(reverse("customer-detail", kwargs={"pk": customer_id}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["name"], "Ana")

    def test_fetch_unknown_customer_is_404(self):
        resp = self.client.get(reverse("customer-detail", kwargs={"pk": 4242}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.CUSTOMER_NOT_FOUND)

    def test_confirm_unknown_customer_is_404(self):
        resp = self.client.post(reverse("customer-confirm"), {"customer_id": 4242, "name": "Ana"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_confirm_mismatch_is_400(self):
        customer = Customer.objects.create(name="Ana")
        resp = self.client.post(
            reverse("customer-confirm"), {"customer_id": customer.id, "name": "Bia"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.CUSTOMER_NAME_MISMATCH)
