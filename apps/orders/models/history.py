from django.db import models

from .item import OrderItem
from .status import OrderItemStatus


class OrderItemStatusHistory(models.Model):
    """
    Append-only: one row per status change, including the initial PENDING.
    """
    item = models.ForeignKey(OrderItem, related_name="status_history", on_delete=models.CASCADE)
    status = models.CharField(max_length=20, choices=OrderItemStatus.choices)
    changed_at = models.DateTimeField()

    class Meta:
        db_table = "order_item_status_history"
        ordering = ["changed_at", "id"]
        indexes = [
            models.Index(fields=["item", "changed_at"]),
        ]

    def __str__(self):
        return f"{self.item_id} -> {self.status} @ {self.changed_at:%H:%M:%S}"
