import json
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase

from .models import Product
from .stock import (
    FlatStock,
    Variant,
    VariantStock,
    apply_decrement,
    decrement_product_stock,
    derive_in_stock,
    generate_variant_sku,
    recompute_in_stock_flags,
)


def make_product(**kwargs):
    defaults = {"name": "Metal Button", "price": 1000, "category": "Buttons", "stock_qty": 5}
    defaults.update(kwargs)
    return Product.objects.create(**defaults)


class StockModeTests(TestCase):
    def test_flat_stock_in_stock_only_when_positive(self):
        self.assertTrue(derive_in_stock(FlatStock(stock_qty=1)))
        self.assertFalse(derive_in_stock(FlatStock(stock_qty=0)))
        self.assertFalse(derive_in_stock(FlatStock(stock_qty=None)))

    def test_variant_stock_uses_any_variant(self):
        mode = VariantStock(variants=(
            Variant(price=100, sku="A", stock_qty=0),
            Variant(price=100, sku="B", stock_qty=3),
        ))
        self.assertTrue(derive_in_stock(mode))

    def test_explicit_variant_flag_counts_without_quantity(self):
        mode = VariantStock(variants=(Variant(price=100, sku="A", in_stock=True),))
        self.assertTrue(derive_in_stock(mode))

    def test_decrement_clamps_at_zero(self):
        new_mode, applied = apply_decrement(FlatStock(stock_qty=2), 5)
        self.assertTrue(applied)
        self.assertEqual(new_mode.stock_qty, 0)

    def test_untracked_counter_is_not_decremented(self):
        mode = FlatStock(stock_qty=None)
        new_mode, applied = apply_decrement(mode, 1)
        self.assertFalse(applied)
        self.assertEqual(new_mode, mode)

    def test_unknown_sku_leaves_variants_alone(self):
        mode = VariantStock(variants=(Variant(price=100, sku="A", stock_qty=4),))
        new_mode, applied = apply_decrement(mode, 1, sku="nope")
        self.assertFalse(applied)
        self.assertEqual(new_mode.variants[0].stock_qty, 4)

    def test_generate_variant_sku(self):
        self.assertEqual(generate_variant_sku(7, "6 inch", "Black"), "7-6-inch-black")


class ProductModelTests(TestCase):
    def test_save_derives_in_stock(self):
        product = make_product(stock_qty=0)
        self.assertFalse(product.in_stock)

        product.stock_qty = 3
        product.save()
        product.refresh_from_db()
        self.assertTrue(product.in_stock)

    def test_variant_skus_filled_after_insert(self):
        product = make_product(
            stock_qty=None,
            variant_pricing=[
                {"size": "Large", "color": "Red", "price": 1200, "stock_qty": 2},
                {"price": 1100, "stock_qty": 1},
            ],
        )
        product.refresh_from_db()
        skus = [v["sku"] for v in product.variant_pricing]
        self.assertEqual(skus, [f"{product.pk}-large-red", f"{product.pk}-variant-2"])

    def test_active_queryset_excludes_drafts(self):
        active = make_product(name="Live")
        make_product(name="Hidden", status=Product.STATUS_DRAFT)
        self.assertEqual(list(Product.objects.active()), [active])


class DecrementProductStockTests(TestCase):
    def test_flat_decrement(self):
        product = make_product(stock_qty=5)
        self.assertTrue(decrement_product_stock(product.pk, 3))
        product.refresh_from_db()
        self.assertEqual(product.stock_qty, 2)
        self.assertTrue(product.in_stock)

    def test_flat_decrement_to_zero_clears_in_stock(self):
        product = make_product(stock_qty=2)
        decrement_product_stock(product.pk, 2)
        product.refresh_from_db()
        self.assertEqual(product.stock_qty, 0)
        self.assertFalse(product.in_stock)

    def test_variant_decrement_clamps_and_recomputes(self):
        product = make_product(
            stock_qty=None,
            variant_pricing=[{"sku": "V1", "price": 500, "stock_qty": 2, "in_stock": True}],
        )
        self.assertTrue(decrement_product_stock(product.pk, 5, sku="V1"))
        product.refresh_from_db()
        variant = product.find_variant("V1")
        self.assertEqual(variant["stock_qty"], 0)
        self.assertFalse(variant["in_stock"])
        self.assertFalse(product.in_stock)

    def test_variant_decrement_keeps_product_in_stock_when_other_variant_has_stock(self):
        product = make_product(
            stock_qty=None,
            variant_pricing=[
                {"sku": "V1", "price": 500, "stock_qty": 2},
                {"sku": "V2", "price": 500, "stock_qty": 4},
            ],
        )
        decrement_product_stock(product.pk, 5, sku="V1")
        product.refresh_from_db()
        self.assertEqual(product.find_variant("V1")["stock_qty"], 0)
        self.assertEqual(product.find_variant("V2")["stock_qty"], 4)
        self.assertTrue(product.in_stock)

    def test_missing_product_is_skipped(self):
        self.assertFalse(decrement_product_stock(999999, 1))
        self.assertFalse(decrement_product_stock("not-an-id", 1))

    def test_missing_variant_is_skipped(self):
        product = make_product(stock_qty=None, variant_pricing=[{"sku": "V1", "price": 500, "stock_qty": 2}])
        self.assertFalse(decrement_product_stock(product.pk, 1, sku="V9"))
        product.refresh_from_db()
        self.assertEqual(product.find_variant("V1")["stock_qty"], 2)


class RecomputeInStockTests(TestCase):
    def test_mismatched_flags_are_reported_and_fixed(self):
        product = make_product(stock_qty=4)
        Product.objects.filter(pk=product.pk).update(in_stock=False)

        self.assertEqual(recompute_in_stock_flags(fix=False), [product])
        product.refresh_from_db()
        self.assertFalse(product.in_stock)

        recompute_in_stock_flags(fix=True)
        product.refresh_from_db()
        self.assertTrue(product.in_stock)
        self.assertEqual(recompute_in_stock_flags(fix=False), [])

    def test_check_product_stock_command(self):
        product = make_product(stock_qty=4)
        Product.objects.filter(pk=product.pk).update(in_stock=False)

        out = StringIO()
        call_command("check_product_stock", "--fix", stdout=out)
        self.assertIn("Fixed 1 product(s)", out.getvalue())
        product.refresh_from_db()
        self.assertTrue(product.in_stock)

    def test_migrate_stock_fields_fills_untracked_counters(self):
        flat = make_product(stock_qty=None)
        variants = make_product(stock_qty=None, variant_pricing=[{"sku": "V1", "price": 500}])

        call_command("migrate_stock_fields", stdout=StringIO())

        flat.refresh_from_db()
        variants.refresh_from_db()
        self.assertEqual(flat.stock_qty, 100)
        self.assertEqual(variants.find_variant("V1")["stock_qty"], 50)
        self.assertTrue(variants.in_stock)

    def test_seed_products_sample(self):
        call_command("seed_products", stdout=StringIO())
        self.assertEqual(Product.objects.count(), 4)
        self.assertTrue(all(p.in_stock for p in Product.objects.all()))


class ProductViewTests(TestCase):
    def setUp(self):
        self.admin = get_user_model().objects.create_user("admin", password="s3cret-pass", is_staff=True)

    def test_storefront_lists_active_products_only(self):
        make_product(name="Live")
        make_product(name="Hidden", status=Product.STATUS_DRAFT)
        response = self.client.get("/api/products/")
        self.assertEqual(response.status_code, 200)
        names = [p["name"] for p in response.json()["products"]]
        self.assertEqual(names, ["Live"])

    def test_draft_product_detail_is_not_found(self):
        product = make_product(status=Product.STATUS_DRAFT)
        response = self.client.get(f"/api/products/{product.pk}/")
        self.assertEqual(response.status_code, 404)

    def test_admin_endpoints_require_login(self):
        response = self.client.get("/api/admin/products/")
        self.assertEqual(response.status_code, 401)

        user = get_user_model().objects.create_user("shopper", password="s3cret-pass")
        self.client.force_login(user)
        response = self.client.get("/api/admin/products/")
        self.assertEqual(response.status_code, 403)

    def test_admin_create_ignores_client_in_stock(self):
        self.client.force_login(self.admin)
        payload = {"name": "Zipper", "price": 1500, "category": "Zippers", "stockQty": 0, "inStock": True}
        response = self.client.post("/api/admin/products/", json.dumps(payload), content_type="application/json")
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()["product"]["inStock"])

    def test_admin_create_rejects_negative_stock(self):
        self.client.force_login(self.admin)
        payload = {"name": "Zipper", "price": 1500, "category": "Zippers", "stockQty": -1}
        response = self.client.post("/api/admin/products/", json.dumps(payload), content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_bulk_stock_update(self):
        self.client.force_login(self.admin)
        product = make_product(stock_qty=0)
        payload = {"updates": [{"productId": product.pk, "stockQty": 12}, {"productId": 999999, "stockQty": 1}]}
        response = self.client.put("/api/admin/products/bulk-stock/", json.dumps(payload), content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["matchedCount"], 1)
        product.refresh_from_db()
        self.assertEqual(product.stock_qty, 12)
        self.assertTrue(product.in_stock)

    def test_bulk_delete(self):
        self.client.force_login(self.admin)
        first, second = make_product(name="A"), make_product(name="B")
        response = self.client.post(
            "/api/admin/products/bulk-delete/",
            json.dumps({"ids": [first.pk, second.pk]}),
            content_type="application/json",
        )
        self.assertEqual(response.json()["deletedCount"], 2)
        self.assertFalse(Product.objects.exists())

    def test_bulk_delete_skips_malformed_ids(self):
        self.client.force_login(self.admin)
        product = make_product(name="A")
        response = self.client.post(
            "/api/admin/products/bulk-delete/",
            json.dumps({"ids": ["abc", None, {"id": 1}, product.pk]}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deletedCount"], 1)
        self.assertFalse(Product.objects.exists())
