# apps/customers/services.py
import logging
from typing import Optional

from django.db import transaction

from apps.utils.exceptions import ErrorCodes
from apps.utils.results import OperationError, OperationResult

from .models import Customer

logger = logging.getLogger(__name__)


class CustomerService:

    # --- Narrow directory used by order creation ---

    @staticmethod
    def find_by_id(customer_id, for_update: bool = False) -> Optional[Customer]:
        """
        Confirmed (non-volunteer) customer or None.
        """
        qs = Customer.objects.filter(pk=customer_id, is_volunteer=False)
        if for_update:
            qs = qs.select_for_update()
        return qs.first()

    @staticmethod
    def create(name: str) -> Customer:
        return Customer.objects.create(name=name, is_volunteer=False)

    @staticmethod
    def rename(customer: Customer, name: str) -> Customer:
        if customer.name != name:
            customer.name = name
            customer.save(update_fields=["name"])
        return customer

    @staticmethod
    def names_match(stored: str, provided: str) -> bool:
        return stored.casefold() == provided.casefold()

    # --- Self-service registration ---

    @staticmethod
    def register_customer(name: str) -> OperationResult:
        normalized_name = (name or "").strip()
        if not normalized_name:
            return OperationResult.failure(OperationError(ErrorCodes.CUSTOMER_NAME_REQUIRED, "name"))

        customer = CustomerService.create(normalized_name)
        logger.info(f"Customer {customer.id} registered with name {customer.name}")
        return OperationResult.success(customer)

    @staticmethod
    def get_customer(customer_id) -> Optional[Customer]:
        return CustomerService.find_by_id(customer_id)

    @staticmethod
    @transaction.atomic
    def confirm_customer(customer_id, name: str) -> OperationResult:
        """
        Case-insensitive identity check. A match with different casing
        rewrites the stored name to the provided one.
        """
        normalized_name = (name or "").strip()
        if not normalized_name:
            return OperationResult.failure(OperationError(ErrorCodes.CUSTOMER_NAME_REQUIRED, "name"))

        customer = CustomerService.find_by_id(customer_id, for_update=True)
        if customer is None:
            return OperationResult.failure(OperationError(ErrorCodes.CUSTOMER_NOT_FOUND, "customer_id"))

        if not CustomerService.names_match(customer.name, normalized_name):
            return OperationResult.failure(OperationError(ErrorCodes.CUSTOMER_NAME_MISMATCH, "name"))

        CustomerService.rename(customer, normalized_name)
        return OperationResult.success(customer)
