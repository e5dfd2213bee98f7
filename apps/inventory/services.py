import logging
import uuid
from typing import Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import F

from apps.catalog.models import Flavor
from apps.utils.exceptions import ErrorCodes
from apps.utils.results import OperationError, OperationResult

from .models import StockMovement

logger = logging.getLogger(__name__)


def flavor_key(flavor_id) -> Optional[str]:
    """
    Canonical text form of a flavor id (any UUID spelling), None if it does not parse.
    """
    try:
        return str(uuid.UUID(str(flavor_id)))
    except (TypeError, ValueError, AttributeError):
        return None


class InventoryService:
    """
    Core Logic for flavor stock.
    ALL changes to Flavor.available_quantity must pass through here.
    """

    @staticmethod
    def lock_flavors(flavor_ids: Iterable) -> Dict[str, Flavor]:
        """
        Single batched fetch of the requested flavors, row-locked in
        deterministic (id) order to prevent deadlocks.
        Must be called inside an atomic block.
        """
        ids = sorted({key for key in map(flavor_key, flavor_ids) if key is not None})
        flavors = (
            Flavor.objects
            .select_for_update()
            .filter(id__in=ids)
            .order_by("id")
        )
        return {str(f.id): f for f in flavors}

    @staticmethod
    def collect_stock_errors(
        requested: Dict[str, int],
        flavors: Dict[str, Flavor],
        field: str = "items",
    ) -> List[OperationError]:
        """
        One FlavorOutOfStock error per insufficient flavor.
        Every group is checked; callers see all problems at once.
        """
        errors = []
        for flavor_id, quantity in requested.items():
            flavor = flavors[flavor_id]
            if flavor.available_quantity < quantity:
                errors.append(
                    OperationError(ErrorCodes.FLAVOR_OUT_OF_STOCK, field, (flavor.name,))
                )
        return errors

    @staticmethod
    @transaction.atomic
    def reserve(flavor: Flavor, quantity: int, reference: str) -> OperationResult:
        """
        Decrements available stock. The UPDATE is guarded on the current
        balance, so a concurrent reservation can never drive it negative.
        """
        updated = (
            Flavor.objects
            .filter(pk=flavor.pk, available_quantity__gte=quantity)
            .update(available_quantity=F("available_quantity") - quantity)
        )
        if not updated:
            return OperationResult.failure(
                OperationError(ErrorCodes.FLAVOR_OUT_OF_STOCK, "items", (flavor.name,))
            )

        flavor.refresh_from_db(fields=["available_quantity"])
        StockMovement.objects.create(
            flavor=flavor,
            quantity_change=-quantity,
            movement_type=StockMovement.MovementType.RESERVATION,
            reference=reference,
            balance_after=flavor.available_quantity,
        )
        return OperationResult.success(flavor.available_quantity)

    @staticmethod
    @transaction.atomic
    def release(flavor_id, quantity: int, reference: str) -> int:
        """
        Reverses a reservation (Order Cancellation). No upper bound.
        """
        Flavor.objects.filter(pk=flavor_id).update(
            available_quantity=F("available_quantity") + quantity
        )
        balance = Flavor.objects.values_list("available_quantity", flat=True).get(pk=flavor_id)

        StockMovement.objects.create(
            flavor_id=flavor_id,
            quantity_change=quantity,
            movement_type=StockMovement.MovementType.RELEASE,
            reference=reference,
            balance_after=balance,
        )
        return balance

    @staticmethod
    @transaction.atomic
    def restock(flavor: Flavor, quantity: int, reference: str) -> int:
        """
        Adds stock on an admin upsert of an existing flavor.
        """
        Flavor.objects.filter(pk=flavor.pk).update(
            available_quantity=F("available_quantity") + quantity
        )
        flavor.refresh_from_db(fields=["available_quantity"])

        StockMovement.objects.create(
            flavor=flavor,
            quantity_change=quantity,
            movement_type=StockMovement.MovementType.RESTOCK,
            reference=reference,
            balance_after=flavor.available_quantity,
        )
        return flavor.available_quantity

    @staticmethod
    @transaction.atomic
    def set_quantity(flavor_id, available_quantity: int, reference: str):
        """
        For stock counts / admin corrections. Returns None if the flavor is gone.
        """
        try:
            flavor = Flavor.objects.select_for_update().get(pk=flavor_id)
        except Flavor.DoesNotExist:
            return None

        delta = available_quantity - flavor.available_quantity
        flavor.available_quantity = available_quantity
        flavor.save(update_fields=["available_quantity", "updated_at"])

        StockMovement.objects.create(
            flavor=flavor,
            quantity_change=delta,
            movement_type=StockMovement.MovementType.ADJUSTMENT,
            reference=reference,
            balance_after=available_quantity,
        )
        logger.info(f"Stock for flavor {flavor.name} set to {available_quantity} ({delta:+d})")
        return flavor
