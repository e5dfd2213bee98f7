# apps/orders/tests.py
import threading
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature
from django.urls import reverse
from django.utils import timezone

from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Flavor
from apps.customers.models import Customer
from apps.inventory.models import StockMovement
from apps.utils.exceptions import ErrorCodes

from . import selectors
from .models import Order, OrderItem, OrderItemStatus, OrderItemStatusHistory
from .services import OrderService


def _line(flavor, quantity=1, notes=None):
    return {"flavor_id": flavor.id, "quantity": quantity, "notes": notes}


class CreateOrderTests(TestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2)
        self.meat = Flavor.objects.create(name="Meat", price=Decimal("12.50"), available_quantity=5)

    def test_order_explodes_units_and_reserves_stock(self):
        result = OrderService.create_order("Ana", [_line(self.cheese, 2)])

        self.assertTrue(result.succeeded)
        created = result.value
        self.assertEqual(created.total_amount, Decimal("20.00"))
        self.assertEqual(len(created.items), 2)

        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 0)

        items = OrderItem.objects.filter(order_id=created.order_id)
        self.assertEqual(items.count(), 2)
        for item in items:
            self.assertEqual(item.quantity, 1)
            self.assertEqual(item.unit_price, Decimal("10.00"))
            self.assertEqual(item.status, OrderItemStatus.PENDING)
            self.assertEqual(list(item.status_history.values_list("status", flat=True)), ["PENDING"])

    def test_total_matches_items_and_lines_grouped_by_flavor(self):
        result = OrderService.create_order(
            "Ana",
            [_line(self.meat, 1, notes="  no onion "), _line(self.cheese, 1), _line(self.meat, 2)],
        )

        created = result.value
        order = Order.objects.get(pk=created.order_id)
        self.assertEqual(order.total_amount, sum(i.unit_price * i.quantity for i in order.items.all()))
        self.assertEqual(order.total_amount, Decimal("47.50"))

        self.meat.refresh_from_db()
        self.assertEqual(self.meat.available_quantity, 2)
        self.assertEqual(order.items.filter(notes="no onion").count(), 1)
        self.assertEqual(StockMovement.objects.filter(reference=f"ORDER: {order.id}").count(), 2)

    def test_history_shares_one_timestamp(self):
        result = OrderService.create_order("Ana", [_line(self.meat, 3)])
        stamps = set(
            OrderItemStatusHistory.objects
            .filter(item__order_id=result.value.order_id)
            .values_list("changed_at", flat=True)
        )
        self.assertEqual(len(stamps), 1)

    def test_empty_items(self):
        result = OrderService.create_order("Ana", [])
        self.assertTrue(result.has_error(ErrorCodes.ORDER_MUST_HAVE_ITEMS))
        self.assertFalse(Customer.objects.exists())

    def test_blank_name(self):
        result = OrderService.create_order("   ", [_line(self.cheese)])
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NAME_REQUIRED))

    def test_unknown_customer(self):
        result = OrderService.create_order("Ana", [_line(self.cheese)], customer_id=999)
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NOT_FOUND))

    def test_volunteer_record_is_not_a_customer(self):
        volunteer = Customer.objects.create(name="Kitchen", is_volunteer=True)
        result = OrderService.create_order("Kitchen", [_line(self.cheese)], customer_id=volunteer.id)
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NOT_FOUND))

    def test_name_mismatch(self):
        customer = Customer.objects.create(name="Ana")
        result = OrderService.create_order("Bia", [_line(self.cheese)], customer_id=customer.id)
        self.assertTrue(result.has_error(ErrorCodes.CUSTOMER_NAME_MISMATCH))
        self.assertFalse(Order.objects.exists())

    def test_name_casing_is_corrected_and_snapshotted(self):
        customer = Customer.objects.create(name="ana")

        result = OrderService.create_order("Ana", [_line(self.cheese)], customer_id=customer.id)

        self.assertTrue(result.succeeded)
        customer.refresh_from_db()
        self.assertEqual(customer.name, "Ana")
        self.assertEqual(Order.objects.get(pk=result.value.order_id).customer_name_snapshot, "Ana")

    def test_unknown_flavor_leaves_no_trace(self):
        ghost = {"flavor_id": "00000000-0000-0000-0000-000000000000", "quantity": 1}

        result = OrderService.create_order("Ana", [_line(self.cheese), ghost])

        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_NOT_FOUND))
        self.assertFalse(Customer.objects.exists())
        self.assertFalse(Order.objects.exists())

    def test_stock_errors_are_collected_and_nothing_changes(self):
        result = OrderService.create_order("Ana", [_line(self.cheese, 3), _line(self.meat, 6)])

        self.assertFalse(result.succeeded)
        self.assertEqual(
            sorted(e.params[0] for e in result.errors if e.code == ErrorCodes.FLAVOR_OUT_OF_STOCK),
            ["Cheese", "Meat"],
        )
        self.cheese.refresh_from_db()
        self.meat.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 2)
        self.assertEqual(self.meat.available_quantity, 5)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(Customer.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_second_order_for_sold_out_flavor_fails(self):
        OrderService.create_order("Ana", [_line(self.cheese, 2)])

        result = OrderService.create_order("Bia", [_line(self.cheese, 1)])

        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_OUT_OF_STOCK))
        self.assertEqual(result.errors[0].params, ("Cheese",))
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OrderItem.objects.count(), 2)

    def test_unit_price_is_a_snapshot(self):
        result = OrderService.create_order("Ana", [_line(self.meat)])
        Flavor.objects.filter(pk=self.meat.pk).update(price=Decimal("99.00"))

        item = OrderItem.objects.get(order_id=result.value.order_id)
        self.assertEqual(item.unit_price, Decimal("12.50"))

    def test_flavor_id_spellings_are_one_flavor(self):
        result = OrderService.create_order(
            "Ana",
            [
                {"flavor_id": str(self.meat.id).upper(), "quantity": 1},
                {"flavor_id": self.meat.id.hex, "quantity": 1},
                {"flavor_id": self.meat.id, "quantity": 1},
            ],
        )

        self.assertTrue(result.succeeded)
        self.assertEqual(len(result.value.items), 3)
        self.assertEqual(result.value.total_amount, Decimal("37.50"))
        self.meat.refresh_from_db()
        self.assertEqual(self.meat.available_quantity, 2)
        self.assertEqual(StockMovement.objects.filter(flavor=self.meat, quantity_change=-3).count(), 1)

    def test_malformed_flavor_id_is_not_found(self):
        result = OrderService.create_order("Ana", [{"flavor_id": "not-a-uuid", "quantity": 1}])

        self.assertTrue(result.has_error(ErrorCodes.FLAVOR_NOT_FOUND))
        self.assertFalse(Customer.objects.exists())
        self.assertFalse(Order.objects.exists())

    def test_zero_or_negative_quantity_is_rejected(self):
        for quantity in (0, -5):
            with self.subTest(quantity=quantity):
                result = OrderService.create_order("Ana", [_line(self.cheese, quantity)])

                self.assertFalse(result.succeeded)
                self.assertEqual(result.errors[0].code, ErrorCodes.ORDER_ITEM_QUANTITY_INVALID)
                self.assertEqual(result.errors[0].field, "items")
                self.assertEqual(result.errors[0].params, (quantity,))

        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 2)
        self.assertFalse(Customer.objects.exists())
        self.assertFalse(Order.objects.exists())
        self.assertFalse(StockMovement.objects.exists())

    def test_bad_line_fails_the_whole_request(self):
        result = OrderService.create_order("Ana", [_line(self.meat, 2), _line(self.cheese, -1)])

        self.assertEqual([e.code for e in result.errors], [ErrorCodes.ORDER_ITEM_QUANTITY_INVALID])
        self.meat.refresh_from_db()
        self.assertEqual(self.meat.available_quantity, 5)


class AdvanceOrderItemTests(TestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2)
        created = OrderService.create_order("Ana", [_line(self.cheese, 2)]).value
        self.order_id = created.order_id
        self.item = created.items[0]

    def _advance(self, target=None, item=None):
        return OrderService.advance_order_item_status(self.order_id, (item or self.item).id, target)

    def test_implicit_advance_moves_one_step(self):
        result = self._advance()

        self.assertTrue(result.succeeded)
        self.assertEqual(result.value.status, OrderItemStatus.FRYING)
        self.assertIsNotNone(result.value.last_updated_at)
        history = list(self.item.status_history.values_list("status", flat=True))
        self.assertEqual(history, ["PENDING", "FRYING"])

    def test_advance_to_the_end_then_final_stage(self):
        for expected in ("FRYING", "READY_FOR_PICKUP", "COMPLETED"):
            self.assertEqual(self._advance().value.status, expected)

        result = self._advance()

        self.assertTrue(result.has_error(ErrorCodes.ORDER_ITEM_ALREADY_AT_FINAL_STAGE))
        self.assertEqual(self.item.status_history.count(), 4)

    def test_explicit_target_on_completed_item(self):
        for _ in range(3):
            self._advance()

        result = self._advance(OrderItemStatus.COMPLETED)
        self.assertTrue(result.has_error(ErrorCodes.ORDER_ITEM_ALREADY_COMPLETED))

    def test_explicit_next_target(self):
        result = self._advance(OrderItemStatus.FRYING)
        self.assertTrue(result.succeeded)

    def test_noop_target_rejected(self):
        result = self._advance(OrderItemStatus.PENDING)
        self.assertTrue(result.has_error(ErrorCodes.INVALID_STATUS_TRANSITION))
        self.assertEqual(self.item.status_history.count(), 1)

    def test_skipping_a_step_rejected(self):
        result = self._advance(OrderItemStatus.COMPLETED)
        self.assertTrue(result.has_error(ErrorCodes.INVALID_STATUS_TRANSITION))

    def test_cancel_is_not_an_advance(self):
        result = self._advance(OrderItemStatus.CANCELLED)
        self.assertTrue(result.has_error(ErrorCodes.INVALID_STATUS_TRANSITION))

    def test_cancelled_item_cannot_advance(self):
        OrderItem.objects.filter(pk=self.item.pk).update(status=OrderItemStatus.CANCELLED)
        result = self._advance()
        self.assertTrue(result.has_error(ErrorCodes.ORDER_ITEM_ALREADY_COMPLETED))

    def test_legacy_status_advances_from_its_mapped_stage(self):
        OrderItem.objects.filter(pk=self.item.pk).update(status=OrderItemStatus.PACKAGING)
        result = self._advance()
        self.assertEqual(result.value.status, OrderItemStatus.READY_FOR_PICKUP)

    def test_unknown_order_and_item(self):
        missing_order = OrderService.advance_order_item_status(9999, self.item.id)
        self.assertTrue(missing_order.has_error(ErrorCodes.ORDER_NOT_FOUND))

        missing_item = OrderService.advance_order_item_status(
            self.order_id, "00000000-0000-0000-0000-000000000000"
        )
        self.assertTrue(missing_item.has_error(ErrorCodes.ORDER_ITEM_NOT_FOUND))

    def test_item_must_belong_to_order(self):
        meat = Flavor.objects.create(name="Meat", price=Decimal("1.00"), available_quantity=1)
        other = OrderService.create_order("Bia", [_line(meat)]).value

        result = OrderService.advance_order_item_status(self.order_id, other.items[0].id)
        self.assertTrue(result.has_error(ErrorCodes.ORDER_ITEM_NOT_FOUND))


class CancelOrderTests(TestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=3)
        self.meat = Flavor.objects.create(name="Meat", price=Decimal("12.50"), available_quantity=3)
        self.created = OrderService.create_order("Ana", [_line(self.cheese, 1), _line(self.meat, 1)]).value

    def test_cancel_releases_stock_and_records_history(self):
        result = OrderService.cancel_order(self.created.order_id, self.created.customer_id)

        self.assertTrue(result.succeeded)
        self.cheese.refresh_from_db()
        self.meat.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 3)
        self.assertEqual(self.meat.available_quantity, 3)

        for item in OrderItem.objects.filter(order_id=self.created.order_id):
            self.assertEqual(item.status, OrderItemStatus.CANCELLED)
            self.assertEqual(item.status_history.last().status, OrderItemStatus.CANCELLED)

        self.assertEqual(selectors.get_active_orders(), [])

        orders = selectors.get_customer_orders(self.created.customer_id)
        self.assertFalse(orders[0]["is_cancelable"])
        self.assertTrue(all(i["status"] == "CANCELLED" for i in orders[0]["items"]))

    def test_started_order_cannot_be_cancelled(self):
        started, untouched = self.created.items
        OrderService.advance_order_item_status(self.created.order_id, started.id)

        result = OrderService.cancel_order(self.created.order_id, self.created.customer_id)

        self.assertTrue(result.has_error(ErrorCodes.ORDER_CANNOT_BE_CANCELLED))
        untouched.refresh_from_db()
        self.assertEqual(untouched.status, OrderItemStatus.PENDING)
        self.assertEqual(untouched.status_history.count(), 1)

    def test_other_customer_cannot_cancel(self):
        intruder = Customer.objects.create(name="Bia")
        result = OrderService.cancel_order(self.created.order_id, intruder.id)
        self.assertTrue(result.has_error(ErrorCodes.ORDER_NOT_FOUND))


class OrderSelectorTests(TestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=10)
        self.ana = OrderService.create_order("Ana", [_line(self.cheese, 2)]).value
        self.bia = OrderService.create_order("Bia", [_line(self.cheese, 1)]).value

    def test_active_orders_grouped_by_customer(self):
        groups = selectors.get_active_orders()

        self.assertEqual([g["customer_name"] for g in groups], ["Ana", "Bia"])
        self.assertEqual(len(groups[0]["orders"][0]["items"]), 2)

    def test_active_orders_hide_finished_items(self):
        item = self.bia.items[0]
        for _ in range(3):
            OrderService.advance_order_item_status(self.bia.order_id, item.id)

        groups = selectors.get_active_orders()

        self.assertEqual([g["customer_name"] for g in groups], ["Ana"])

    def test_legacy_out_for_delivery_is_not_active(self):
        OrderItem.objects.filter(order_id=self.bia.order_id).update(status=OrderItemStatus.OUT_FOR_DELIVERY)

        self.assertEqual([g["customer_name"] for g in selectors.get_active_orders()], ["Ana"])
        history = selectors.get_order_history()
        self.assertEqual(history[0]["orders"][0]["items"][0]["status"], "READY_FOR_PICKUP")

    def test_active_search_by_name_or_id(self):
        self.assertEqual(len(selectors.get_active_orders("  bi ")), 1)
        self.assertEqual(
            selectors.get_active_orders(str(self.ana.customer_id))[0]["customer_id"],
            self.ana.customer_id,
        )
        self.assertEqual(selectors.get_active_orders("nobody"), [])

    def test_customer_orders_newest_first_with_history(self):
        later = timezone.now() + timedelta(minutes=5)
        with mock.patch("django.utils.timezone.now", return_value=later):
            second = OrderService.create_order(
                "Ana", [_line(self.cheese)], customer_id=self.ana.customer_id
            ).value
        OrderService.advance_order_item_status(self.ana.order_id, self.ana.items[0].id)

        orders = selectors.get_customer_orders(self.ana.customer_id)

        self.assertEqual([o["order_id"] for o in orders], [second.order_id, self.ana.order_id])
        self.assertTrue(orders[0]["is_cancelable"])
        self.assertFalse(orders[1]["is_cancelable"])
        histories = [[h["status"] for h in i["history"]] for i in orders[1]["items"]]
        self.assertIn(["PENDING", "FRYING"], histories)

    def test_history_lists_only_orders_with_completed_items(self):
        self.assertEqual(selectors.get_order_history(), [])

        item = self.ana.items[0]
        for _ in range(3):
            OrderService.advance_order_item_status(self.ana.order_id, item.id)

        groups = selectors.get_order_history()

        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0]["customer_name"], "Ana")
        completed = [i for i in groups[0]["orders"][0]["items"] if i["item_id"] == item.id][0]
        self.assertEqual(
            [h["status"] for h in completed["history"]],
            ["PENDING", "FRYING", "READY_FOR_PICKUP", "COMPLETED"],
        )


class OrderApiTests(APITestCase):
    def setUp(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=2)

    def _create(self, **overrides):
        payload = {
            "customer_name": "Ana",
            "items": [{"flavor_id": str(self.cheese.id), "quantity": 2}],
        }
        payload.update(overrides)
        return self.client.post(reverse("order-list"), payload, format="json")

    def test_full_order_flow(self):
        resp = self._create()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["total_amount"], "20.00")
        self.assertEqual(len(resp.data["items"]), 2)
        self.assertEqual(resp.data["items"][0]["status"], "PENDING")

        order_id = resp.data["order_id"]
        item_id = resp.data["items"][0]["item_id"]

        resp = self.client.get(reverse("order-active"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data[0]["orders"][0]["order_id"], order_id)

        resp = self.client.post(
            reverse("order-advance", kwargs={"pk": order_id, "item_id": item_id}), {}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "FRYING")
        self.assertEqual(resp.data["flavor_name"], "Cheese")

    def test_out_of_stock_is_400_with_flavor_param(self):
        self._create()
        resp = self._create(items=[{"flavor_id": str(self.cheese.id), "quantity": 1}])

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            resp.data["errors"],
            [{"code": ErrorCodes.FLAVOR_OUT_OF_STOCK, "field": "items", "params": ["Cheese"]}],
        )

    def test_unknown_customer_is_404(self):
        resp = self._create(customer_id=4242)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_empty_items_is_400(self):
        resp = self._create(items=[])
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.ORDER_MUST_HAVE_ITEMS)

    def test_quantity_above_limit_is_validation_error(self):
        resp = self._create(items=[{"flavor_id": str(self.cheese.id), "quantity": 101}])
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", resp.data)

    def test_advance_unknown_item_is_404(self):
        order_id = self._create().data["order_id"]
        resp = self.client.post(
            reverse("order-advance", kwargs={
                "pk": order_id, "item_id": "00000000-0000-0000-0000-000000000000",
            }),
            {},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.ORDER_ITEM_NOT_FOUND)

    def test_advance_invalid_target_is_400(self):
        created = self._create().data
        resp = self.client.post(
            reverse("order-advance", kwargs={"pk": created["order_id"], "item_id": created["items"][0]["item_id"]}),
            {"target_status": "COMPLETED"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["errors"][0]["code"], ErrorCodes.INVALID_STATUS_TRANSITION)

    def test_cancel_and_customer_view(self):
        created = self._create().data

        resp = self.client.post(
            reverse("order-cancel", kwargs={"pk": created["order_id"]}),
            {"customer_id": created["customer_id"]},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)

        resp = self.client.get(reverse("order-customer", kwargs={"customer_id": created["customer_id"]}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data[0]["is_cancelable"])
        self.assertEqual(resp.data[0]["items"][0]["history"][-1]["status"], "CANCELLED")

        self.cheese.refresh_from_db()
        self.assertEqual(self.cheese.available_quantity, 2)

    def test_cancel_someone_elses_order_is_404(self):
        created = self._create().data
        resp = self.client.post(
            reverse("order-cancel", kwargs={"pk": created["order_id"]}),
            {"customer_id": created["customer_id"] + 1},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_history_endpoint(self):
        resp = self.client.get(reverse("order-history"), {"search": "Ana"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, [])


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentOrderTests(TransactionTestCase):
    # Real transactions: both requests race for the last unit

    def setUp(self):
        self.flavor = Flavor.objects.create(name="Cheese", price=Decimal("10.00"), available_quantity=1)

    def test_last_unit_is_sold_once(self):
        barrier = threading.Barrier(2)
        results = []

        def place_order(name):
            try:
                barrier.wait(timeout=5)
                results.append(OrderService.create_order(name, [_line(self.flavor)]))
            finally:
                connection.close()

        threads = [threading.Thread(target=place_order, args=(name,)) for name in ("Ana", "Bia")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 2)
        self.assertEqual(sum(1 for r in results if r.succeeded), 1)
        failed = [r for r in results if not r.succeeded][0]
        self.assertTrue(failed.has_error(ErrorCodes.FLAVOR_OUT_OF_STOCK))

        self.flavor.refresh_from_db()
        self.assertEqual(self.flavor.available_quantity, 0)
        self.assertEqual(Order.objects.count(), 1)
