from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.catalog.models import Flavor
from apps.inventory.services import InventoryService

DEFAULT_MENU = [
    {"name": "Carne", "description": "Carne moída temperada", "price": Decimal("12.90"), "available_quantity": 100},
    {"name": "Queijo", "description": "Mussarela", "price": Decimal("10.90"), "available_quantity": 100},
    {"name": "Frango c/ Catupiry", "description": None, "price": Decimal("11.90"), "available_quantity": 100},
    {"name": "Chocolate", "description": None, "price": Decimal("10.00"), "available_quantity": 50},
]


class Command(BaseCommand):
    help = "Seeds the default flavor menu (upsert by name, stock reset to the default)"

    @transaction.atomic
    def handle(self, *args, **options):
        for entry in DEFAULT_MENU:
            flavor, created = Flavor.objects.update_or_create(
                name=entry["name"],
                defaults={"description": entry["description"], "price": entry["price"]},
            )
            InventoryService.set_quantity(flavor.id, entry["available_quantity"], reference="SEED")
            self.stdout.write(f"{'Created' if created else 'Updated'} {flavor.name}")

        self.stdout.write(self.style.SUCCESS(f"Seeded {len(DEFAULT_MENU)} flavors"))
