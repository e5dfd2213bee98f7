import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from apps.customers.services import CustomerService
from apps.inventory.services import InventoryService, flavor_key
from apps.utils.exceptions import ErrorCodes
from apps.utils.results import OperationError, OperationResult

from .models import Order, OrderItem, OrderItemStatus, OrderItemStatusHistory
from .workflow import (
    TERMINAL_CANCEL,
    is_final_status,
    is_valid_forward_transition,
    next_status,
    normalize_status,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderCreation:
    order_id: int
    customer_id: int
    total_amount: Decimal
    items: List[OrderItem] = field(default_factory=list)


def _is_unit_count(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 1


def _rollback(*errors: OperationError) -> OperationResult:
    """
    Failure inside an atomic block: nothing written so far survives
    (including a customer created for this order).
    """
    transaction.set_rollback(True)
    return OperationResult.failures(errors)


class OrderService:
    """
    Only entry point for mutating orders and their items.
    Business-rule failures come back as OperationResult, never as exceptions.
    """

    @staticmethod
    def create_order(customer_name: str, items: List[dict], customer_id: Optional[int] = None) -> OperationResult:
        """
        items: [{"flavor_id", "quantity", "notes"}]

        1. Resolve the customer (existing + name check, or new)
        2. Lock the requested flavors in one batch
        3. Check every flavor's stock, collecting all shortages
        4. Reserve stock, create the order and one row per unit (Atomic)
        """
        if not items:
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_MUST_HAVE_ITEMS, "items"))

        normalized_name = (customer_name or "").strip()
        if not normalized_name:
            return OperationResult.failure(OperationError(ErrorCodes.CUSTOMER_NAME_REQUIRED, "customer_name"))

        # Every line is at least one whole unit
        bad_quantities = [line.get("quantity") for line in items if not _is_unit_count(line.get("quantity"))]
        if bad_quantities:
            return OperationResult.failures(
                OperationError(ErrorCodes.ORDER_ITEM_QUANTITY_INVALID, "items", (quantity,))
                for quantity in bad_quantities
            )

        with transaction.atomic():
            result = OrderService._create_order_locked(normalized_name, items, customer_id)

        if result.succeeded:
            created = result.value
            logger.info(
                f"Order {created.order_id} created for customer {created.customer_id} "
                f"({len(created.items)} items, total {created.total_amount})",
                extra={"order_id": created.order_id, "customer_id": created.customer_id},
            )
        return result

    @staticmethod
    def _create_order_locked(customer_name: str, items: List[dict], customer_id: Optional[int]) -> OperationResult:
        if customer_id is not None:
            customer = CustomerService.find_by_id(customer_id, for_update=True)
            if customer is None:
                return _rollback(OperationError(ErrorCodes.CUSTOMER_NOT_FOUND, "customer_id"))
            if not CustomerService.names_match(customer.name, customer_name):
                return _rollback(OperationError(ErrorCodes.CUSTOMER_NAME_MISMATCH, "customer_name"))
            CustomerService.rename(customer, customer_name)
        else:
            customer = CustomerService.create(customer_name)

        # Group by canonical flavor id, first-seen order
        keys = [flavor_key(line["flavor_id"]) for line in items]
        if None in keys:
            return _rollback(OperationError(ErrorCodes.FLAVOR_NOT_FOUND, "items"))

        requested: Dict[str, int] = {}
        for key, line in zip(keys, items):
            requested[key] = requested.get(key, 0) + line["quantity"]

        flavors = InventoryService.lock_flavors(requested.keys())
        if len(flavors) != len(requested):
            return _rollback(OperationError(ErrorCodes.FLAVOR_NOT_FOUND, "items"))

        stock_errors = InventoryService.collect_stock_errors(requested, flavors)
        if stock_errors:
            return _rollback(*stock_errors)

        now = timezone.now()
        total_amount = sum(
            (flavors[key].price * quantity for key, quantity in requested.items()),
            Decimal("0.00"),
        )

        order = Order.objects.create(
            customer=customer,
            customer_name_snapshot=customer_name,
            created_at=now,
            total_amount=total_amount,
        )

        for key, quantity in requested.items():
            reserved = InventoryService.reserve(flavors[key], quantity, reference=f"ORDER: {order.id}")
            if not reserved.succeeded:
                return _rollback(*reserved.errors)

        # One row per unit, each tracked independently
        order_items = []
        for key, line in zip(keys, items):
            flavor = flavors[key]
            notes = (line.get("notes") or "").strip() or None
            for _ in range(line["quantity"]):
                order_items.append(
                    OrderItem(
                        order=order,
                        flavor=flavor,
                        quantity=1,
                        status=OrderItemStatus.PENDING,
                        unit_price=flavor.price,
                        notes=notes,
                        created_at=now,
                    )
                )
        OrderItem.objects.bulk_create(order_items)

        OrderItemStatusHistory.objects.bulk_create([
            OrderItemStatusHistory(item=item, status=OrderItemStatus.PENDING, changed_at=now)
            for item in order_items
        ])

        return OperationResult.success(
            OrderCreation(
                order_id=order.id,
                customer_id=customer.id,
                total_amount=order.total_amount,
                items=order_items,
            )
        )

    @staticmethod
    def advance_order_item_status(order_id, order_item_id, target_status: Optional[str] = None) -> OperationResult:
        """
        Moves one item a single step forward. Without a target the next
        workflow status is used; an explicit target must be exactly one step
        ahead. Cancelling is never an advance.
        """
        with transaction.atomic():
            result = OrderService._advance_locked(order_id, order_item_id, target_status)

        if result.succeeded:
            logger.info(
                f"Order item {order_item_id} for order {order_id} advanced to status {result.value.status}",
                extra={"order_id": order_id, "order_item_id": str(order_item_id)},
            )
        return result

    @staticmethod
    def _advance_locked(order_id, order_item_id, target_status: Optional[str]) -> OperationResult:
        if not Order.objects.filter(pk=order_id).exists():
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_NOT_FOUND, "order_id"))

        item = (
            OrderItem.objects
            .select_for_update()
            .filter(pk=order_item_id, order_id=order_id)
            .first()
        )
        if item is None:
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_ITEM_NOT_FOUND, "order_item_id"))

        current = normalize_status(item.status)
        if current == TERMINAL_CANCEL:
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_ITEM_ALREADY_COMPLETED, "target_status"))

        # Implicit advance past COMPLETED reports the final stage, not "already completed"
        if target_status is None:
            resolved = next_status(current)
            if resolved is None:
                return OperationResult.failure(
                    OperationError(ErrorCodes.ORDER_ITEM_ALREADY_AT_FINAL_STAGE, "target_status")
                )
        else:
            if is_final_status(current):
                return OperationResult.failure(
                    OperationError(ErrorCodes.ORDER_ITEM_ALREADY_COMPLETED, "target_status")
                )
            resolved = str(target_status)
            if (
                resolved == current
                or resolved == TERMINAL_CANCEL
                or not is_valid_forward_transition(current, resolved)
            ):
                return OperationResult.failure(
                    OperationError(ErrorCodes.INVALID_STATUS_TRANSITION, "target_status", (current, resolved))
                )

        now = timezone.now()
        item.status = resolved
        item.last_updated_at = now
        item.save(update_fields=["status", "last_updated_at"])

        OrderItemStatusHistory.objects.create(item=item, status=resolved, changed_at=now)

        return OperationResult.success(item)

    @staticmethod
    def cancel_order(order_id, customer_id) -> OperationResult:
        """
        Whole-order cancellation by its owner, allowed only while every item
        is still PENDING. Reserved stock goes back to the flavors.
        """
        with transaction.atomic():
            result = OrderService._cancel_locked(order_id, customer_id)

        if result.succeeded:
            logger.info(
                f"Order {order_id} cancelled for customer {customer_id}",
                extra={"order_id": order_id, "customer_id": customer_id},
            )
        return result

    @staticmethod
    def _cancel_locked(order_id, customer_id) -> OperationResult:
        order = (
            Order.objects
            .select_for_update()
            .filter(pk=order_id, customer_id=customer_id)
            .first()
        )
        if order is None:
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_NOT_FOUND, "order_id"))

        items = list(order.items.select_for_update().order_by("created_at", "id"))
        if any(item.status != OrderItemStatus.PENDING for item in items):
            return OperationResult.failure(OperationError(ErrorCodes.ORDER_CANNOT_BE_CANCELLED, "order_id"))

        now = timezone.now()
        for item in items:
            item.status = OrderItemStatus.CANCELLED
            item.last_updated_at = now
        OrderItem.objects.bulk_update(items, ["status", "last_updated_at"])

        OrderItemStatusHistory.objects.bulk_create([
            OrderItemStatusHistory(item=item, status=OrderItemStatus.CANCELLED, changed_at=now)
            for item in items
        ])

        # Release in id order (same lock order as creation)
        released = Counter()
        for item in items:
            released[str(item.flavor_id)] += item.quantity
        for flavor_id in sorted(released):
            InventoryService.release(flavor_id, released[flavor_id], reference=f"CANCEL: {order.id}")

        return OperationResult.success()
