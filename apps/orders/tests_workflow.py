from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from apps.orders import workflow
from apps.orders.models import OrderItemStatus


class WorkflowPolicyTests(SimpleTestCase):
    def test_next_status_walks_the_kitchen_line(self):
        self.assertEqual(workflow.next_status(OrderItemStatus.PENDING), OrderItemStatus.FRYING)
        self.assertEqual(workflow.next_status(OrderItemStatus.FRYING), OrderItemStatus.READY_FOR_PICKUP)
        self.assertEqual(workflow.next_status(OrderItemStatus.READY_FOR_PICKUP), OrderItemStatus.COMPLETED)

    def test_next_status_none_at_end_or_outside_line(self):
        self.assertIsNone(workflow.next_status(OrderItemStatus.COMPLETED))
        self.assertIsNone(workflow.next_status(OrderItemStatus.CANCELLED))
        self.assertIsNone(workflow.next_status("UNKNOWN"))

    def test_forward_transition_allows_same_or_next(self):
        for status in workflow.ORDERED_STATUSES:
            self.assertTrue(workflow.is_valid_forward_transition(status, status))

        self.assertTrue(workflow.is_valid_forward_transition(OrderItemStatus.PENDING, OrderItemStatus.FRYING))

    def test_forward_transition_rejects_skips_and_backwards(self):
        self.assertFalse(workflow.is_valid_forward_transition(OrderItemStatus.PENDING, OrderItemStatus.READY_FOR_PICKUP))
        self.assertFalse(workflow.is_valid_forward_transition(OrderItemStatus.PENDING, OrderItemStatus.COMPLETED))
        self.assertFalse(workflow.is_valid_forward_transition(OrderItemStatus.FRYING, OrderItemStatus.PENDING))

    def test_cancelled_is_outside_forward_line(self):
        self.assertFalse(workflow.is_valid_forward_transition(OrderItemStatus.PENDING, OrderItemStatus.CANCELLED))
        self.assertFalse(workflow.is_valid_forward_transition(OrderItemStatus.CANCELLED, OrderItemStatus.PENDING))

    def test_final_statuses(self):
        self.assertTrue(workflow.is_final_status(OrderItemStatus.COMPLETED))
        self.assertTrue(workflow.is_final_status(OrderItemStatus.CANCELLED))
        self.assertFalse(workflow.is_final_status(OrderItemStatus.PENDING))
        self.assertFalse(workflow.is_final_status(OrderItemStatus.READY_FOR_PICKUP))

    def test_legacy_statuses_are_mapped(self):
        self.assertEqual(workflow.normalize_status(OrderItemStatus.PACKAGING), OrderItemStatus.FRYING)
        self.assertEqual(workflow.normalize_status("OUT_FOR_DELIVERY"), OrderItemStatus.READY_FOR_PICKUP)
        self.assertEqual(workflow.normalize_status(OrderItemStatus.PENDING), OrderItemStatus.PENDING)

    def test_normalize_history_sorts_and_collapses_duplicates(self):
        t0 = datetime(2025, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
        history = [
            ("PACKAGING", t0 + timedelta(minutes=2)),
            ("PENDING", t0),
            ("FRYING", t0 + timedelta(minutes=1)),
            ("READY_FOR_PICKUP", t0 + timedelta(minutes=3)),
            ("OUT_FOR_DELIVERY", t0 + timedelta(minutes=4)),
        ]

        normalized = workflow.normalize_history(history)

        self.assertEqual(
            normalized,
            [
                ("PENDING", t0),
                ("FRYING", t0 + timedelta(minutes=1)),
                ("READY_FOR_PICKUP", t0 + timedelta(minutes=3)),
            ],
        )
