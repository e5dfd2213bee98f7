# apps/catalog/services.py
import logging
from decimal import Decimal
from typing import List, Optional

from django.db import transaction
from django.db.models import ProtectedError

from apps.inventory.services import InventoryService
from apps.utils.exceptions import ErrorCodes
from apps.utils.results import OperationError, OperationResult

from .models import Flavor

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class FlavorService:
    """
    Admin-side flavor management.
    Stock movements are delegated to InventoryService.
    """

    @staticmethod
    def list_flavors():
        return Flavor.objects.order_by("name")

    @staticmethod
    def _upsert(name, description, image_url, available_quantity, price) -> Flavor:
        flavor = Flavor.objects.select_for_update().filter(name=name).first()

        if flavor is not None:
            flavor.price = price
            if description is not None:
                flavor.description = description
            if image_url is not None:
                flavor.image_url = image_url
            flavor.save(update_fields=["price", "description", "image_url", "updated_at"])
        else:
            flavor = Flavor.objects.create(
                name=name,
                description=description,
                image_url=image_url,
                available_quantity=0,
                price=price,
            )

        if available_quantity:
            InventoryService.restock(flavor, available_quantity, reference=f"UPSERT: {name}")
        return flavor

    @staticmethod
    @transaction.atomic
    def create_flavor(
        name: str,
        price: Decimal,
        available_quantity: int = 0,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> OperationResult:
        """
        Creates a flavor, or tops up an existing one with the same exact name:
        stock is added, price replaced, description / image replaced only when given.
        """
        normalized_name = (name or "").strip()
        if not normalized_name:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NAME_REQUIRED, "name"))

        flavor = FlavorService._upsert(
            normalized_name,
            _clean(description),
            _clean(image_url),
            available_quantity,
            price,
        )
        logger.info(f"Flavor {flavor.name} saved (stock: {flavor.available_quantity}, price: {flavor.price})")
        return OperationResult.success(flavor)

    @staticmethod
    def create_flavors_batch(entries: List[dict]) -> OperationResult:
        if not entries:
            return OperationResult.success([])

        normalized = [
            {
                "name": (entry.get("name") or "").strip(),
                "description": _clean(entry.get("description")),
                "image_url": _clean(entry.get("image_url")),
                "available_quantity": entry.get("available_quantity", 0),
                "price": entry.get("price", Decimal("0.00")),
            }
            for entry in entries
        ]

        if any(not entry["name"] for entry in normalized):
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NAME_REQUIRED, "name"))

        # Case-insensitive duplicates inside the batch itself
        seen = {}
        duplicates = []
        for entry in normalized:
            key = entry["name"].casefold()
            if key in seen and seen[key] not in duplicates:
                duplicates.append(seen[key])
            seen.setdefault(key, entry["name"])

        if duplicates:
            return OperationResult.failures(
                OperationError(ErrorCodes.FLAVOR_NAME_EXISTS, "name", (dup,)) for dup in duplicates
            )

        with transaction.atomic():
            flavors = [FlavorService._upsert(**entry) for entry in normalized]

        logger.info(f"Batch saved {len(flavors)} flavors")
        return OperationResult.success(flavors)

    @staticmethod
    @transaction.atomic
    def update_flavor(flavor_id, name: str, price: Decimal, description: Optional[str] = None, image_url: Optional[str] = None) -> OperationResult:
        flavor = Flavor.objects.select_for_update().filter(pk=flavor_id).first()
        if flavor is None:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NOT_FOUND, "id"))

        normalized_name = (name or "").strip()
        if not normalized_name:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NAME_REQUIRED, "name"))

        # Conflict check excludes the record itself
        if Flavor.objects.filter(name=normalized_name).exclude(pk=flavor_id).exists():
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NAME_EXISTS, "name", (normalized_name,)))

        flavor.name = normalized_name
        flavor.description = _clean(description)
        flavor.image_url = _clean(image_url)
        flavor.price = price
        flavor.save(update_fields=["name", "description", "image_url", "price", "updated_at"])

        logger.info(f"Flavor {flavor.id} updated (name: {flavor.name}, price: {flavor.price})")
        return OperationResult.success(flavor)

    @staticmethod
    def update_inventory(flavor_id, available_quantity: int) -> OperationResult:
        flavor = InventoryService.set_quantity(flavor_id, available_quantity, reference="MANUAL: admin")
        if flavor is None:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NOT_FOUND, "id"))
        return OperationResult.success(flavor)

    @staticmethod
    @transaction.atomic
    def delete_flavor(flavor_id) -> OperationResult:
        """
        Flavors referenced by order items cannot be deleted (restrict).
        """
        flavor = Flavor.objects.filter(pk=flavor_id).first()
        if flavor is None:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_NOT_FOUND, "id"))

        try:
            with transaction.atomic():
                flavor.delete()
        except ProtectedError:
            return OperationResult.failure(OperationError(ErrorCodes.FLAVOR_IN_USE, "id", (flavor.name,)))

        logger.info(f"Flavor {flavor_id} deleted")
        return OperationResult.success()
