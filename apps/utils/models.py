import uuid

from django.db import models


class UUIDModel(models.Model):
    """
    UUID primary key plus creation time. Base for append-only rows.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class TimestampedModel(UUIDModel):
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
