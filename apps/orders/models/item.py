import uuid

from django.db import models
from django.utils import timezone

from apps.catalog.models import Flavor
from .order import Order
from .status import OrderItemStatus


class OrderItem(models.Model):
    """
    One unit of one flavor. Multi-quantity requests are exploded into
    single-quantity rows so each unit moves through the kitchen on its own.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    flavor = models.ForeignKey(Flavor, on_delete=models.PROTECT, related_name='order_items')

    quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(
        max_length=20,
        choices=OrderItemStatus.choices,
        default=OrderItemStatus.PENDING,
        db_index=True,
    )

    # Snapshot field (price at order time)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    notes = models.CharField(max_length=256, null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    last_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]

    @property
    def subtotal(self):
        return self.unit_price * self.quantity

    def __str__(self):
        return f"{self.quantity}x {self.flavor_id} [{self.status}]"
