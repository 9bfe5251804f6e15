from decimal import Decimal

from django.core.management.base import BaseCommand

from inventory.choices import BaseUnit, ProductType
from inventory.models import Product
from inventory.services.units import to_base


class Command(BaseCommand):
    help = "Seed a demo catalog covering count, weight and volume products"

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding products..."))

        # sku, name, category, type, unit, size, display stock, cost, price
        products_data = [
            ("SODA-330", "Cola Can 330mL", "Beverages", ProductType.COUNT, BaseUnit.PIECE, 1, 48, "18.00", "25.00"),
            ("BREAD-LOAF", "White Bread Loaf", "Bakery", ProductType.COUNT, BaseUnit.PIECE, 1, 20, "45.00", "60.00"),
            ("RICE-5KG", "Jasmine Rice 5kg", "Grains", ProductType.WEIGHT, BaseUnit.KILOGRAM, 5, 12, "250.00", "310.00"),
            ("COFFEE-250", "Ground Coffee 250g", "Beverages", ProductType.WEIGHT, BaseUnit.GRAM, 250, 30, "120.00", "165.00"),
            ("OIL-1L", "Cooking Oil 1L", "Pantry", ProductType.VOLUME, BaseUnit.LITER, 1, 24, "85.00", "110.00"),
            ("SOY-500", "Soy Sauce 500mL", "Pantry", ProductType.VOLUME, BaseUnit.MILLILITER, 500, 6, "32.00", "45.00"),
        ]

        created_count = 0
        for sku, name, category, product_type, unit, size, units, cost, price in products_data:
            stock = to_base(Decimal(units), product_type, Decimal(size), unit)

            _, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category": category,
                    "product_type": product_type,
                    "base_unit": unit,
                    "quantity_per_unit": Decimal(size),
                    "quantity_in_stock": stock,
                    "cost_price": Decimal(cost),
                    "selling_price": Decimal(price),
                },
            )
            created_count += int(created)

        self.stdout.write(
            self.style.SUCCESS(f"Seeded {created_count} new products ({len(products_data)} total).")
        )
