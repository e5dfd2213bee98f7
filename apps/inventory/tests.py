from decimal import Decimal

from django.test import TestCase

from apps.catalog.models import Flavor
from apps.utils.exceptions import ErrorCodes

from .models import StockMovement
from .services import InventoryService


class InventoryServiceTests(TestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2)
        self.meat = Flavor.objects.create(name="Meat", price=Decimal("12.50"), available_quantity=5)

    def test_lock_flavors_returns_only_existing_ids(self):
        flavors = InventoryService.lock_flavors([self.cheese.id, self.meat.id, self.cheese.id])
        self.assertEqual(set(flavors), {str(self.cheese.id), str(self.meat.id)})

    def test_lock_flavors_keys_are_canonical(self):
        flavors = InventoryService.lock_flavors([str(self.cheese.id).upper(), self.meat.id.hex, "garbage"])
        self.assertEqual(set(flavors), {str(self.cheese.id), str(self.meat.id)})

    def test_collect_stock_errors_reports_every_short_flavor(self):
        flavors = InventoryService.lock_flavors([self.cheese.id, self.meat.id])
        errors = InventoryService.collect_stock_errors(
            {str(self.cheese.id): 3, str(self.meat.id): 6},
            flavors,
        )
        self.assertEqual(len(errors), 2)
        self.assertTrue(all(e.code == ErrorCodes.FLAVOR_OUT_OF_STOCK for e in errors))
        self.assertEqual({e.params[0] for e in errors}, {"Cheese", "Meat"})

    def test_collect_stock_errors_empty_when_enough(self):
        flavors = InventoryService.lock_flavors([self.cheese.id])
        self.assertEqual(InventoryService.collect_stock_errors({str(self.cheese.id): 2}, flavors), [])

    def test_reserve_decrements_and_logs_movement(self):
        result = InventoryService.reserve(self.cheese, 2, reference="ORDER: 1")

        self.assertTrue(result.succeeded)
        self.assertEqual(result.value, 0)
        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 0)

        movement = StockMovement.objects.get(flavor=self.cheese)
        self.assertEqual(movement.quantity_change, -2)
        self.assertEqual(movement.balance_after, 0)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.RESERVATION)

    def test_reserve_never_goes_negative(self):
        result = InventoryService.reserve(self.cheese, 3, reference="ORDER: 1")

        self.assertFalse(result.succeeded)
        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_OUT_OF_STOCK))
        self.assertEqual(result.errors[0].params, ("Cheese",))
        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 2)
        self.assertFalse(StockMovement.objects.exists())

    def test_release_has_no_upper_bound(self):
        balance = InventoryService.release(self.cheese.id, 10, reference="CANCEL: 1")

        self.assertEqual(balance, 12)
        movement = StockMovement.objects.get(flavor=self.cheese)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.RELEASE)
        self.assertEqual(movement.quantity_change, 10)

    def test_set_quantity_records_delta(self):
        flavor = InventoryService.set_quantity(self.meat.id, 3, reference="MANUAL: admin")

        self.assertEqual(flavor.available_quantity, 3)
        movement = StockMovement.objects.get(flavor=self.meat)
        self.assertEqual(movement.quantity_change, -2)
        self.assertEqual(movement.balance_after, 3)

    def test_set_quantity_unknown_flavor(self):
        self.assertIsNone(
            InventoryService.set_quantity("00000000-0000-0000-0000-000000000000", 3, reference="MANUAL: admin")
        )
