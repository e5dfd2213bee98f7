# apps/reports/services.py
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Prefetch, Sum

from apps.orders.models import Order, OrderItem, OrderItemStatus, OrderItemStatusHistory
from apps.orders.workflow import normalize_status

from .models import DailyReportSnapshot

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def utc_day_bounds(day: date):
    """
    [start, end) of a UTC calendar day.
    """
    start = datetime.combine(day, time.min, tzinfo=dt_timezone.utc)
    return start, start + timedelta(days=1)


def _popular_flavors(items):
    rows = (
        items
        .values("flavor_id", "flavor__name")
        .annotate(quantity=Count("id"), revenue=Sum("unit_price"))
        .order_by("-quantity", "flavor__name")
    )
    return [
        {
            "flavor_id": row["flavor_id"],
            "flavor_name": row["flavor__name"],
            "quantity": row["quantity"],
            "revenue": (row["revenue"] or Decimal("0.00")).quantize(TWO_PLACES),
        }
        for row in rows
    ]


def _timings(orders):
    """
    Walks every item's history once.
    Returns (completion seconds per completed order, deltas per status).
    """
    completion_durations = []
    durations_by_status = defaultdict(list)

    for order in orders:
        completion = None
        for item in order.items.all():
            # Append order: a kitchen clock running behind shows up as a negative delta
            histories = list(item.status_history.all())

            for current, following in zip(histories, histories[1:]):
                delta = (following.changed_at - current.changed_at).total_seconds()
                if delta < 0:
                    continue
                durations_by_status[normalize_status(current.status)].append(delta)

            completed = [h.changed_at for h in histories if normalize_status(h.status) == OrderItemStatus.COMPLETED]
            if completed and (completion is None or max(completed) > completion):
                completion = max(completed)

        if completion is not None:
            completion_durations.append((completion - order.created_at).total_seconds())

    return completion_durations, durations_by_status


def compute_daily_summary(day: date) -> dict:
    start, end = utc_day_bounds(day)

    orders = Order.objects.filter(created_at__gte=start, created_at__lt=end)
    items = OrderItem.objects.filter(
        order__created_at__gte=start,
        order__created_at__lt=end,
    ).exclude(status=OrderItemStatus.CANCELLED)

    totals = orders.aggregate(count=Count("id"), revenue=Sum("total_amount"))
    total_orders = totals["count"]
    total_revenue = (totals["revenue"] or Decimal("0.00")).quantize(TWO_PLACES)
    average_ticket = (
        (total_revenue / total_orders).quantize(TWO_PLACES)
        if total_orders
        else Decimal("0.00")
    )

    with_history = orders.prefetch_related(
        Prefetch(
            "items",
            queryset=OrderItem.objects.prefetch_related(
                Prefetch("status_history", queryset=OrderItemStatusHistory.objects.order_by("id"))
            ),
        )
    )

    hourly = [0] * 24
    order_list = list(with_history)
    for order in order_list:
        hourly[order.created_at.astimezone(dt_timezone.utc).hour] += 1

    completion_durations, durations_by_status = _timings(order_list)

    step_stats = sorted(
        (
            {
                "status": status,
                "average_seconds": sum(values) / len(values),
                "fastest_seconds": min(values),
                "slowest_seconds": max(values),
            }
            for status, values in durations_by_status.items()
        ),
        key=lambda stat: stat["average_seconds"],
        reverse=True,
    )

    return {
        "date": day,
        "total_revenue": total_revenue,
        "total_orders": total_orders,
        "total_items": items.count(),
        "average_ticket": average_ticket,
        "average_order_completion_seconds": (
            sum(completion_durations) / len(completion_durations) if completion_durations else None
        ),
        "popular_flavors": _popular_flavors(items),
        "hourly_order_counts": [{"hour": hour, "count": count} for hour, count in enumerate(hourly)],
        "step_duration_stats": step_stats,
    }


@transaction.atomic
def snapshot_daily_report(day: date) -> DailyReportSnapshot:
    summary = compute_daily_summary(day)

    snapshot, _ = DailyReportSnapshot.objects.update_or_create(
        date=day,
        defaults={
            "total_orders": summary["total_orders"],
            "total_items": summary["total_items"],
            "total_revenue": summary["total_revenue"],
            "average_ticket": summary["average_ticket"],
            "average_order_completion_seconds": summary["average_order_completion_seconds"],
        },
    )
    logger.info(f"Daily report snapshot saved for {day} ({summary['total_orders']} orders)")
    return snapshot
