from django.db import models


class OrderItemStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    FRYING = "FRYING", "Frying"
    READY_FOR_PICKUP = "READY_FOR_PICKUP", "Ready for Pickup"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"

    # Legacy six-stage values; still readable, never written.
    PACKAGING = "PACKAGING", "Packaging (legacy)"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for Delivery (legacy)"
