# apps/catalog/models.py
from decimal import Decimal

from django.db import models

from apps.utils.models import TimestampedModel


class Flavor(TimestampedModel):
    """
    A sellable pastel flavor with its own stock and price.

    NOTE:
    - available_quantity is only changed through InventoryService
      (order creation reserves, cancellation releases, admin sets).
    - price only changes through an explicit admin update; order items keep
      their own unit_price snapshot.
    """
    name = models.CharField(max_length=80, unique=True)
    description = models.CharField(max_length=256, null=True, blank=True)
    image_url = models.CharField(max_length=256, null=True, blank=True)

    available_quantity = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "flavors"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="flavor_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} (stock: {self.available_quantity})"
