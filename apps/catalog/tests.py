# apps/catalog/tests.py
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from apps.customers.models import Customer
from apps.inventory.models import StockMovement
from apps.orders.models import Order, OrderItem
from apps.utils.exceptions import ErrorCodes

from .models import Flavor
from .services import FlavorService


class FlavorServiceTests(TestCase):
    def test_create_trims_name_and_logs_initial_stock(self):
        result = FlavorService.create_flavor(name="  Cheese  ", price=Decimal("10.00"), available_quantity=5)

        self.assertTrue(result.succeeded)
        flavor = result.value
        self.assertEqual(flavor.name, "Cheese")
        self.assertEqual(flavor.available_quantity, 5)
        self.assertEqual(StockMovement.objects.get(flavor=flavor).movement_type, StockMovement.MovementType.RESTOCK)

    def test_create_requires_name(self):
        result = FlavorService.create_flavor(name="   ", price=Decimal("1.00"))
        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_NAME_REQUIRED))
        self.assertFalse(Flavor.objects.exists())

    def test_create_with_existing_name_tops_up(self):
        Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2, description="Mozzarella")

        result = FlavorService.create_flavor(name="Cheese", price=Decimal("11.00"), available_quantity=3, description=" ")

        flavor = result.value
        self.assertEqual(Flavor.objects.count(), 1)
        self.assertEqual(flavor.available_quantity, 5)
        self.assertEqual(flavor.price, Decimal("11.00"))
        self.assertEqual(flavor.description, "Mozzarella")

    def test_batch_empty_is_success(self):
        result = FlavorService.create_flavors_batch([])
        self.assertTrue(result.succeeded)
        self.assertEqual(result.value, [])

    def test_batch_rejects_case_insensitive_duplicates(self):
        result = FlavorService.create_flavors_batch([
            {"name": "Cheese", "price": Decimal("1.00")},
            {"name": "cheese", "price": Decimal("1.00")},
            {"name": "Meat", "price": Decimal("1.00")},
        ])

        self.assertFalse(result.succeeded)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].code, ErrorCodes.FLAVOR_NAME_EXISTS)
        self.assertEqual(result.errors[0].params, ("Cheese",))
        self.assertFalse(Flavor.objects.exists())

    def test_update_conflict_excludes_itself(self):
        cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"))
        Flavor.objects.create(name="Meat", price=Decimal("12.00"))

        same_name = FlavorService.update_flavor(cheese.id, name="Cheese", price=Decimal("9.50"))
        self.assertTrue(same_name.succeeded)

        clash = FlavorService.update_flavor(cheese.id, name="Meat", price=Decimal("9.50"))
        self.assertTrue(clash.has_error(ErrorCodes.FLAVOR_NAME_EXISTS))

    def test_update_unknown_flavor(self):
        result = FlavorService.update_flavor("00000000-0000-0000-0000-000000000000", name="X", price=Decimal("1.00"))
        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_NOT_FOUND))

    def test_delete_referenced_flavor_is_rejected(self):
        cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"))
        customer = Customer.objects.create(name="Ana")
        order = Order.objects.create(customer=customer, customer_name_snapshot="Ana", total_amount=Decimal("10.00"))
        OrderItem.objects.create(order=order, flavor=cheese, unit_price=Decimal("10.00"))

        result = FlavorService.delete_flavor(cheese.id)

        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_IN_USE))
        self.assertTrue(Flavor.objects.filter(pk=cheese.pk).exists())

    def test_delete_unreferenced_flavor(self):
        cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"))
        self.assertTrue(FlavorService.delete_flavor(cheese.id).succeeded)
        self.assertFalse(Flavor.objects.exists())


class FlavorViewSetTests(APITestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2)

    def test_list_flavors(self):
        resp = self.client.get(reverse("flavor-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data[0]["name"], "Cheese")
        self.assertEqual(resp.data[0]["price"], "10.00")

    def test_create_flavor(self):
        resp = self.client.post(
            reverse("flavor-list"),
            {"name": "Meat", "price": "12.90", "available_quantity": 10},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["available_quantity"], 10)

    def test_create_blank_name_returns_structured_error(self):
        resp = self.client.post(reverse("flavor-list"), {"name": "  ", "price": "1.00"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.FLAVOR_NAME_REQUIRED)
        self.assertEqual(resp.data["errors"][0]["field"], "name")

    def test_batch_create(self):
        resp = self.client.post(
            reverse("flavor-batch"),
            {"flavors": [
                {"name": "Meat", "price": "12.90", "available_quantity": 1},
                {"name": "Cheese", "price": "10.00", "available_quantity": 3},
            ]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 5)

    def test_update_inventory(self):
        resp = self.client.patch(
            reverse("flavor-inventory", kwargs={"pk": self.cheese.pk}),
            {"available_quantity": 7},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 7)

    def test_update_unknown_flavor_is_404(self):
        resp = self.client.put(
            reverse("flavor-detail", kwargs={"pk": "00000000-0000-0000-0000-000000000000"}),
            {"name": "X", "price": "1.00"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.FLAVOR_NOT_FOUND)

    def test_delete_flavor(self):
        resp = self.client.delete(reverse("flavor-detail", kwargs={"pk": self.cheese.pk}))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)


class SeedFlavorsCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_flavors", stdout=StringIO())
        call_command("seed_flavors", stdout=StringIO())

        self.assertEqual(Flavor.objects.count(), 4)
        self.assertEqual(Flavor.objects.get(name="Chocolate").available_quantity, 50)
