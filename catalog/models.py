# catalog/models.py
from django.db import models

from .stock import FlatStock, VariantStock, derive_in_stock, ensure_variant_skus, stock_mode_for


class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Product.STATUS_ACTIVE)


class Product(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_DRAFT = "draft"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_DRAFT, "Draft"),
    ]

    CATEGORY_CHOICES = [
        ("Buttons", "Buttons"),
        ("Zippers", "Zippers"),
        ("Elastic", "Elastic"),
        ("Cords", "Cords"),
        ("Laces", "Laces"),
        ("Accessories", "Accessories"),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = models.PositiveIntegerField(help_text="Base price in paise")
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, db_index=True)
    image = models.CharField(max_length=500, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    sizes = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)
    packs = models.JSONField(default=list, blank=True)

    # Derived on every save from stock_qty / variant_pricing; never set directly
    in_stock = models.BooleanField(default=False, editable=False)
    # None = quantity not tracked
    stock_qty = models.PositiveIntegerField(null=True, blank=True, default=0)
    variant_pricing = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "category"], name="catalog_prod_status_cat_idx"),
        ]

    @property
    def stock_mode(self):
        return stock_mode_for(self.stock_qty, self.variant_pricing)

    @stock_mode.setter
    def stock_mode(self, mode):
        if isinstance(mode, VariantStock):
            self.variant_pricing = [v.to_dict() for v in mode.variants]
        elif isinstance(mode, FlatStock):
            self.variant_pricing = []
        self.stock_qty = mode.stock_qty

    @property
    def has_variants(self):
        return bool(self.variant_pricing)

    def find_variant(self, sku):
        if not sku:
            return None
        for variant in self.variant_pricing or []:
            if variant.get("sku") == sku:
                return variant
        return None

    def save(self, *args, **kwargs):
        self.in_stock = derive_in_stock(self.stock_mode)
        super().save(*args, **kwargs)

        # SKUs embed the primary key, so they can only be filled after the first insert
        variants = ensure_variant_skus(self.pk, self.variant_pricing)
        if variants != list(self.variant_pricing or []):
            self.variant_pricing = variants
            type(self).objects.filter(pk=self.pk).update(variant_pricing=variants)

    def to_dict(self):
        return {
            "id": self.pk,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "status": self.status,
            "sizes": self.sizes or [],
            "colors": self.colors or [],
            "packs": self.packs or [],
            "inStock": self.in_stock,
            "stockQty": self.stock_qty,
            "variantPricing": [
                {
                    "size": v.get("size"),
                    "color": v.get("color"),
                    "pack": v.get("pack"),
                    "price": v.get("price"),
                    "stockQty": v.get("stock_qty"),
                    "inStock": v.get("in_stock"),
                    "sku": v.get("sku"),
                    "image": v.get("image"),
                }
                for v in (self.variant_pricing or [])
            ],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self):
        return f"{self.name} ({self.category})"
