from django.db import models
from django.utils import timezone

from apps.customers.models import Customer

from .status import OrderItemStatus


class Order(models.Model):
    """
    One checkout. Never updated after creation except through its items;
    cancellation is an item status change, not a delete.
    """
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='orders')

    # Snapshot so later renames don't rewrite history
    customer_name_snapshot = models.CharField(max_length=120)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order #{self.id} ({self.customer_name_snapshot})"

    @property
    def is_cancelable(self):
        items = list(self.items.all())
        return bool(items) and all(i.status == OrderItemStatus.PENDING for i in items)
