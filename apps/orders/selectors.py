"""
Read-only projections over orders. Nothing here writes.

Statuses and history are normalized on the way out (see workflow).
"""
from django.conf import settings
from django.db.models import CharField, Exists, OuterRef, Prefetch, Q
from django.db.models.functions import Cast

from .models import Order, OrderItem, OrderItemStatus
from .workflow import normalize_history, normalize_status

# Legacy OUT_FOR_DELIVERY counts as finished for both views
ACTIVE_EXCLUDED_STATUSES = (
    OrderItemStatus.COMPLETED,
    OrderItemStatus.CANCELLED,
    OrderItemStatus.OUT_FOR_DELIVERY,
)
HISTORY_STATUSES = (
    OrderItemStatus.COMPLETED,
    OrderItemStatus.OUT_FOR_DELIVERY,
)


def _apply_search(queryset, search):
    term = (search or "").strip()[: settings.ORDER_SEARCH_MAX_LENGTH]
    if not term:
        return queryset
    return (
        queryset
        .annotate(customer_id_text=Cast("customer_id", output_field=CharField()))
        .filter(Q(customer__name__icontains=term) | Q(customer_id_text__icontains=term))
    )


def item_view(item, with_history=False):
    view = {
        "item_id": item.id,
        "flavor_id": item.flavor_id,
        "flavor_name": item.flavor.name,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "status": normalize_status(item.status),
        "created_at": item.created_at,
        "last_updated_at": item.last_updated_at,
    }
    if with_history:
        view["history"] = [
            {"status": status, "changed_at": changed_at}
            for status, changed_at in normalize_history(
                (entry.status, entry.changed_at) for entry in item.status_history.all()
            )
        ]
    return view


def _group_by_customer(orders, build_order):
    groups = {}
    for order in orders:
        group = groups.setdefault(
            order.customer_id,
            {"customer_id": order.customer_id, "customer_name": order.customer.name, "orders": []},
        )
        group["orders"].append(build_order(order))
    return list(groups.values())


def get_active_orders(search=None):
    """
    Orders with at least one unfinished item, grouped by customer (by id),
    each order carrying only its unfinished items.
    """
    active_items = (
        OrderItem.objects
        .exclude(status__in=ACTIVE_EXCLUDED_STATUSES)
        .select_related("flavor")
        .order_by("created_at", "id")
    )
    orders = (
        Order.objects
        .filter(Exists(active_items.filter(order=OuterRef("pk"))))
        .select_related("customer")
        .prefetch_related(Prefetch("items", queryset=active_items, to_attr="active_items"))
    )
    orders = _apply_search(orders, search).order_by("customer_id", "created_at", "id")

    return _group_by_customer(
        orders,
        lambda order: {
            "order_id": order.id,
            "created_at": order.created_at,
            "total_amount": order.total_amount,
            "items": [item_view(item) for item in order.active_items],
        },
    )


def _items_with_history():
    return Prefetch(
        "items",
        queryset=(
            OrderItem.objects
            .select_related("flavor")
            .prefetch_related("status_history")
            .order_by("created_at", "id")
        ),
    )


def get_customer_orders(customer_id):
    """
    Every order of one customer, newest first, with full item history.
    """
    orders = (
        Order.objects
        .filter(customer_id=customer_id)
        .prefetch_related(_items_with_history())
        .order_by("-created_at", "-id")
    )

    result = []
    for order in orders:
        items = list(order.items.all())
        result.append({
            "order_id": order.id,
            "created_at": order.created_at,
            "total_amount": order.total_amount,
            "is_cancelable": order.is_cancelable,
            "items": [item_view(item, with_history=True) for item in items],
        })
    return result


def get_order_history(search=None):
    """
    Orders with at least one finished item, newest first, grouped by
    customer (group order follows each customer's most recent order).
    """
    finished = OrderItem.objects.filter(order=OuterRef("pk"), status__in=HISTORY_STATUSES)
    orders = (
        Order.objects
        .filter(Exists(finished))
        .select_related("customer")
        .prefetch_related(_items_with_history())
    )
    orders = _apply_search(orders, search).order_by("-created_at", "-id")

    return _group_by_customer(
        orders,
        lambda order: {
            "order_id": order.id,
            "created_at": order.created_at,
            "total_amount": order.total_amount,
            "items": [item_view(item, with_history=True) for item in order.items.all()],
        },
    )
