# apps/customers/models.py
from django.db import models
from django.utils import timezone


class Customer(models.Model):
    """
    The identity a set of orders belongs to.
    Volunteer records are internal and never resolved from the public side.
    """
    name = models.CharField(max_length=120)
    is_volunteer = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "customers"
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} (#{self.id})"
