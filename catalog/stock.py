"""
Product stock ledger.

A product tracks stock in exactly one of two modes:

* ``FlatStock``    - a single ``stock_qty`` counter on the product.
* ``VariantStock`` - one counter per entry of ``variant_pricing``; the
  product-level ``in_stock`` flag is derived from the variants.

``stock_qty`` of ``None`` means "not tracked": such counters are never
decremented and never make a product sellable on their own.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from django.db import transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variant:
    price: int
    size: Optional[str] = None
    color: Optional[str] = None
    pack: Optional[str] = None
    stock_qty: Optional[int] = None
    in_stock: Optional[bool] = None
    sku: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        stock_qty = data.get("stock_qty")
        return cls(
            price=int(data.get("price") or 0),
            size=data.get("size") or None,
            color=data.get("color") or None,
            pack=data.get("pack") or None,
            stock_qty=int(stock_qty) if isinstance(stock_qty, (int, float)) and not isinstance(stock_qty, bool) else None,
            in_stock=data.get("in_stock") if isinstance(data.get("in_stock"), bool) else None,
            sku=data.get("sku") or None,
            image=data.get("image") or None,
        )

    def to_dict(self):
        return {
            "size": self.size,
            "color": self.color,
            "pack": self.pack,
            "price": self.price,
            "stock_qty": self.stock_qty,
            "in_stock": self.in_stock,
            "sku": self.sku,
            "image": self.image,
        }

    @property
    def has_stock(self):
        return (self.stock_qty or 0) > 0 or self.in_stock is True


@dataclass(frozen=True)
class FlatStock:
    stock_qty: Optional[int]


@dataclass(frozen=True)
class VariantStock:
    variants: Tuple[Variant, ...]
    stock_qty: Optional[int] = None


StockMode = Union[FlatStock, VariantStock]


def stock_mode_for(stock_qty, variant_pricing) -> StockMode:
    if variant_pricing:
        return VariantStock(
            variants=tuple(Variant.from_dict(v) for v in variant_pricing),
            stock_qty=stock_qty,
        )
    return FlatStock(stock_qty=stock_qty)


def derive_in_stock(mode: StockMode) -> bool:
    """in_stock = flat counter > 0, or any variant with stock (count or explicit flag)"""
    flat_has_stock = (mode.stock_qty or 0) > 0
    if isinstance(mode, VariantStock):
        return flat_has_stock or any(v.has_stock for v in mode.variants)
    return flat_has_stock


def apply_decrement(mode: StockMode, quantity, sku=None):
    """
    Return (new_mode, applied). Counters are clamped at zero; an untracked
    counter or an unknown SKU leaves the mode unchanged with applied=False.
    """
    if isinstance(mode, VariantStock):
        for index, variant in enumerate(mode.variants):
            if sku and variant.sku == sku:
                if variant.stock_qty is None:
                    return mode, False
                remaining = max(0, variant.stock_qty - quantity)
                updated = replace(variant, stock_qty=remaining, in_stock=remaining > 0)
                variants = mode.variants[:index] + (updated,) + mode.variants[index + 1:]
                return replace(mode, variants=variants), True
        return mode, False

    if mode.stock_qty is None:
        return mode, False
    return FlatStock(stock_qty=max(0, mode.stock_qty - quantity)), True


def generate_variant_sku(product_id, size=None, color=None, pack=None):
    """Format: {productId}-{size}-{color}-{pack}"""
    parts = [str(product_id)]
    for value in (size, color, pack):
        if value:
            parts.append(value.replace(" ", "-").lower())
    return "-".join(parts)


def ensure_variant_skus(product_id, variant_pricing):
    """Fill in SKUs for variants saved without one"""
    filled = []
    for index, variant in enumerate(variant_pricing or []):
        variant = dict(variant)
        if not variant.get("sku"):
            if variant.get("size") or variant.get("color") or variant.get("pack"):
                variant["sku"] = generate_variant_sku(product_id, variant.get("size"), variant.get("color"), variant.get("pack"))
            else:
                variant["sku"] = f"{product_id}-variant-{index + 1}"
        filled.append(variant)
    return filled


def decrement_product_stock(product_id, quantity, sku=None):
    """
    Decrement stock for one ordered line. Must run inside the caller's
    transaction. Returns False (and logs) when nothing could be decremented.
    """
    from .models import Product

    try:
        pk = int(product_id)
    except (TypeError, ValueError):
        logger.warning(f"Stock decrement skipped: invalid product id {product_id!r}")
        return False

    with transaction.atomic():
        product = Product.objects.select_for_update().filter(pk=pk).first()
        if product is None:
            logger.warning(f"Stock decrement skipped: product {product_id} not found")
            return False

        new_mode, applied = apply_decrement(product.stock_mode, quantity, sku)
        if not applied:
            if isinstance(new_mode, VariantStock):
                logger.warning(f"Stock decrement skipped: no tracked variant {sku!r} on product {product_id}")
            else:
                logger.info(f"Product {product_id} does not track stock; nothing to decrement")
            return False

        product.stock_mode = new_mode
        product.save(update_fields=["stock_qty", "variant_pricing", "in_stock", "updated_at"])
        logger.info(f"Decremented stock for product {product_id} (sku={sku or '-'}) by {quantity}")
        return True


def recompute_in_stock_flags(fix=True):
    """
    Compare every product's stored in_stock flag with the derived value.
    Returns the list of mismatched products (fixed in place when fix=True).
    """
    from .models import Product

    mismatched = []
    for product in Product.objects.all().order_by("name"):
        expected = derive_in_stock(product.stock_mode)
        if product.in_stock != expected:
            mismatched.append(product)
            if fix:
                # save() re-derives the flag
                product.save(update_fields=["in_stock", "updated_at"])
    return mismatched
