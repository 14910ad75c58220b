from django.core.management.base import BaseCommand
from django.db import transaction

from catalog.models import Product

DEFAULT_FLAT_STOCK = 100
DEFAULT_VARIANT_STOCK = 50


class Command(BaseCommand):
    help = "Give products without stock counters a starting quantity so they become sellable"

    def add_arguments(self, parser):
        parser.add_argument("--flat", type=int, default=DEFAULT_FLAT_STOCK, help="Quantity for products without variants")
        parser.add_argument("--variant", type=int, default=DEFAULT_VARIANT_STOCK, help="Quantity for each untracked variant")

    def handle(self, *args, **options):
        flat_qty = max(0, options["flat"])
        variant_qty = max(0, options["variant"])
        updated = 0

        with transaction.atomic():
            for product in Product.objects.select_for_update().order_by("pk"):
                changed = False
                if product.has_variants:
                    variants = []
                    for variant in product.variant_pricing:
                        variant = dict(variant)
                        if variant.get("stock_qty") is None:
                            variant["stock_qty"] = variant_qty
                            variant["in_stock"] = variant_qty > 0
                            changed = True
                        variants.append(variant)
                    product.variant_pricing = variants
                elif product.stock_qty is None:
                    product.stock_qty = flat_qty
                    changed = True

                if changed:
                    product.save()
                    updated += 1
                    self.stdout.write(f"Updated {product.name}")

        self.stdout.write(self.style.SUCCESS(f"Migrated stock fields for {updated} product(s)"))
