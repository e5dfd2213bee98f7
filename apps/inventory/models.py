from django.db import models
from apps.catalog.models import Flavor
from apps.utils.models import UUIDModel


class StockMovement(UUIDModel):
    """
    Immutable Ledger of all flavor stock changes.
    """
    class MovementType(models.TextChoices):
        RESERVATION = "RESERVE", "Reservation (Order)"
        RELEASE = "RELEASE", "Release (Cancellation)"
        RESTOCK = "RESTOCK", "Restock (Admin upsert)"
        ADJUSTMENT = "ADJUST", "Manual Adjustment"

    flavor = models.ForeignKey(
        Flavor,
        on_delete=models.CASCADE,
        related_name='stock_movements'
    )

    quantity_change = models.IntegerField(help_text="Delta value (+/-)")
    movement_type = models.CharField(max_length=20, choices=MovementType.choices)

    # Traceability
    reference = models.CharField(max_length=100, db_index=True, help_text="Order ID or admin action")
    balance_after = models.IntegerField(help_text="Snapshot of available qty")

    class Meta:
        db_table = "stock_movements"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.movement_type} {self.quantity_change:+d} {self.flavor_id} ({self.reference})"
