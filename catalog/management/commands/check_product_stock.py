from django.core.management.base import BaseCommand

from catalog.models import Product
from catalog.stock import VariantStock, recompute_in_stock_flags


class Command(BaseCommand):
    help = "Report each product's stock counters and flag in_stock values that disagree with them"

    def add_arguments(self, parser):
        parser.add_argument("--fix", action="store_true", help="Re-derive and save mismatched in_stock flags")

    def handle(self, *args, **options):
        products = Product.objects.all().order_by("name")
        if not products.exists():
            self.stdout.write("No products found")
            return

        for product in products:
            mode = product.stock_mode
            if isinstance(mode, VariantStock):
                counters = ", ".join(
                    f"{v.sku or '?'}={'untracked' if v.stock_qty is None else v.stock_qty}"
                    for v in mode.variants
                )
                detail = f"variants [{counters}]"
            else:
                detail = f"stockQty={'untracked' if mode.stock_qty is None else mode.stock_qty}"
            self.stdout.write(f"{product.pk:>5}  {product.name[:40]:<40}  inStock={product.in_stock}  {detail}")

        mismatched = recompute_in_stock_flags(fix=options["fix"])
        if not mismatched:
            self.stdout.write(self.style.SUCCESS("All in_stock flags match stock counters"))
            return

        names = ", ".join(p.name for p in mismatched)
        if options["fix"]:
            self.stdout.write(self.style.SUCCESS(f"Fixed {len(mismatched)} product(s): {names}"))
        else:
            self.stdout.write(self.style.WARNING(
                f"{len(mismatched)} product(s) have a stale in_stock flag: {names}. Re-run with --fix."
            ))
