# apps/reports/tests.py
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Flavor
from apps.customers.models import Customer
from apps.orders.models import Order, OrderItem, OrderItemStatus, OrderItemStatusHistory

from . import tasks
from .models import DailyReportSnapshot
from .services import compute_daily_summary, snapshot_daily_report

DAY = date(2025, 3, 10)
MORNING = datetime(2025, 3, 10, 9, 0, tzinfo=dt_timezone.utc)
AFTERNOON = datetime(2025, 3, 10, 14, 30, tzinfo=dt_timezone.utc)


def _minutes(base, minutes):
    return base + timedelta(minutes=minutes)


class ReportFixtureMixin:
    def build_day(self):
        self.cheese = Flavor.objects.create(name="Cheese", price=Decimal("10.00"))
        self.meat = Flavor.objects.create(name="Meat", price=Decimal("12.50"))
        ana = Customer.objects.create(name="Ana")
        bia = Customer.objects.create(name="Bia")

        morning = Order.objects.create(
            customer=ana, customer_name_snapshot="Ana", created_at=MORNING, total_amount=Decimal("22.50")
        )
        self._item(morning, self.cheese, OrderItemStatus.COMPLETED, [
            ("PENDING", 0), ("PACKAGING", 2), ("READY_FOR_PICKUP", 5), ("COMPLETED", 10),
        ])
        # Kitchen clock behind: negative delta must be ignored
        self._item(morning, self.meat, OrderItemStatus.FRYING, [("PENDING", 0), ("FRYING", -1)])

        afternoon = Order.objects.create(
            customer=bia, customer_name_snapshot="Bia", created_at=AFTERNOON, total_amount=Decimal("10.00")
        )
        self._item(afternoon, self.cheese, OrderItemStatus.CANCELLED, [("PENDING", 0), ("CANCELLED", 1)])

        next_day = Order.objects.create(
            customer=ana,
            customer_name_snapshot="Ana",
            created_at=datetime(2025, 3, 11, 0, 0, tzinfo=dt_timezone.utc),
            total_amount=Decimal("99.00"),
        )
        self._item(next_day, self.meat, OrderItemStatus.PENDING, [("PENDING", 0)])

    def _item(self, order, flavor, current, history):
        item = OrderItem.objects.create(
            order=order,
            flavor=flavor,
            unit_price=flavor.price,
            status=current,
            created_at=order.created_at,
        )
        for entry_status, offset in history:
            OrderItemStatusHistory.objects.create(
                item=item, status=entry_status, changed_at=_minutes(order.created_at, offset)
            )
        return item


class DailySummaryTests(ReportFixtureMixin, TestCase):
    def setUp(self):
        self.build_day()

    def test_totals_cover_only_the_utc_day(self):
        summary = compute_daily_summary(DAY)

        self.assertEqual(summary["total_orders"], 2)
        self.assertEqual(summary["total_revenue"], Decimal("32.50"))
        self.assertEqual(summary["total_items"], 2)
        self.assertEqual(summary["average_ticket"], Decimal("16.25"))

    def test_average_completion_ignores_unfinished_orders(self):
        summary = compute_daily_summary(DAY)
        self.assertEqual(summary["average_order_completion_seconds"], 600.0)

    def test_popular_flavors_rank_by_quantity_then_name(self):
        popular = compute_daily_summary(DAY)["popular_flavors"]

        self.assertEqual([p["flavor_name"] for p in popular], ["Cheese", "Meat"])
        self.assertEqual(popular[0]["quantity"], 1)
        self.assertEqual(popular[1]["revenue"], Decimal("12.50"))

    def test_hourly_histogram_has_every_hour(self):
        hourly = compute_daily_summary(DAY)["hourly_order_counts"]

        self.assertEqual(len(hourly), 24)
        self.assertEqual(hourly[9], {"hour": 9, "count": 1})
        self.assertEqual(hourly[14], {"hour": 14, "count": 1})
        self.assertEqual(sum(h["count"] for h in hourly), 2)

    def test_step_stats_normalized_and_sorted(self):
        stats = compute_daily_summary(DAY)["step_duration_stats"]

        self.assertEqual([s["status"] for s in stats], ["READY_FOR_PICKUP", "FRYING", "PENDING"])
        pending = stats[2]
        self.assertEqual(pending["average_seconds"], 90.0)
        self.assertEqual(pending["fastest_seconds"], 60.0)
        self.assertEqual(pending["slowest_seconds"], 120.0)

    def test_empty_day(self):
        summary = compute_daily_summary(date(2024, 1, 1))

        self.assertEqual(summary["total_orders"], 0)
        self.assertEqual(summary["average_ticket"], Decimal("0.00"))
        self.assertIsNone(summary["average_order_completion_seconds"])
        self.assertEqual(summary["popular_flavors"], [])
        self.assertEqual(summary["step_duration_stats"], [])


class DailySnapshotTests(ReportFixtureMixin, TestCase):
    def setUp(self):
        self.build_day()

    def test_snapshot_is_upserted_by_date(self):
        snapshot_daily_report(DAY)
        snapshot = snapshot_daily_report(DAY)

        self.assertEqual(DailyReportSnapshot.objects.count(), 1)
        self.assertEqual(snapshot.total_orders, 2)
        self.assertEqual(snapshot.total_revenue, Decimal("32.50"))

    def test_task_snapshots_requested_day(self):
        self.assertEqual(tasks.snapshot_daily_report("2025-03-10"), "2025-03-10")
        self.assertTrue(DailyReportSnapshot.objects.filter(date=DAY).exists())


class ReportApiTests(ReportFixtureMixin, APITestCase):
    def setUp(self):
        self.build_day()

    def test_daily_report(self):
        resp = self.client.get(reverse("reports-daily"), {"date": "2025-03-10"})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total_revenue"], "32.50")
        self.assertEqual(resp.data["average_ticket"], "16.25")
        self.assertEqual(len(resp.data["hourly_order_counts"]), 24)

    def test_invalid_date_is_validation_error(self):
        resp = self.client.get(reverse("reports-daily"), {"date": "10/03/2025"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_snapshots_newest_first(self):
        snapshot_daily_report(DAY)
        snapshot_daily_report(DAY + timedelta(days=1))

        resp = self.client.get(reverse("reports-snapshots"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([row["date"] for row in resp.data], ["2025-03-11", "2025-03-10"])
