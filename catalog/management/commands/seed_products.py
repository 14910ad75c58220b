import json
import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from catalog.models import Product
from catalog.views import apply_product_payload

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {
        "name": "Metal Jeans Button 17mm",
        "description": "Antique brass shank button for denim.",
        "price": 250,
        "category": "Buttons",
        "stockQty": 100,
    },
    {
        "name": "Nylon Coil Zipper",
        "description": "No. 5 coil zipper, closed end.",
        "price": 1200,
        "category": "Zippers",
        "sizes": ["6 inch", "9 inch"],
        "colors": ["Black", "Navy"],
        "variantPricing": [
            {"size": "6 inch", "color": "Black", "price": 1200, "stockQty": 50},
            {"size": "9 inch", "color": "Black", "price": 1500, "stockQty": 50},
            {"size": "6 inch", "color": "Navy", "price": 1200, "stockQty": 50},
        ],
    },
    {
        "name": "Knitted Elastic 1 inch",
        "description": "Soft knitted elastic sold per roll.",
        "price": 4500,
        "category": "Elastic",
        "packs": ["10m roll", "25m roll"],
        "variantPricing": [
            {"pack": "10m roll", "price": 4500, "stockQty": 50},
            {"pack": "25m roll", "price": 9900, "stockQty": 50},
        ],
    },
    {
        "name": "Cotton Drawcord 5mm",
        "price": 800,
        "category": "Cords",
        "stockQty": 100,
    },
]


class Command(BaseCommand):
    help = "Create catalog products from a JSON file (a list of product payloads) or a built-in sample set"

    def add_arguments(self, parser):
        parser.add_argument("path", nargs="?", help="JSON file with a list of products")
        parser.add_argument("--clear", action="store_true", help="Delete existing products first")

    def handle(self, *args, **options):
        path = options.get("path")
        if path:
            try:
                with open(path, encoding="utf-8") as fh:
                    payloads = json.load(fh)
            except (OSError, ValueError) as e:
                raise CommandError(f"Could not read {path}: {e}")
        else:
            payloads = SAMPLE_PRODUCTS

        if not isinstance(payloads, list):
            raise CommandError("Product file must contain a JSON list")

        created = 0
        with transaction.atomic():
            if options["clear"]:
                deleted, _ = Product.objects.all().delete()
                self.stdout.write(f"Deleted {deleted} existing product(s)")

            for index, payload in enumerate(payloads, start=1):
                try:
                    product = apply_product_payload(Product(), payload)
                except (ValueError, AttributeError) as e:
                    raise CommandError(f"Product #{index}: {e}")
                product.save()
                created += 1
                logger.info(f"Seeded product {product.pk} ({product.name})")

        self.stdout.write(self.style.SUCCESS(f"Seeded {created} product(s)"))
