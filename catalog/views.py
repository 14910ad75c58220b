import json
import logging

from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from balaji_store.decorators import admin_required

from .models import Product
from .stock import recompute_in_stock_flags

logger = logging.getLogger(__name__)

PRODUCT_TEXT_FIELDS = {
    "name": "name",
    "description": "description",
    "category": "category",
    "image": "image",
}
PRODUCT_LIST_FIELDS = ("sizes", "colors", "packs")


# ==================== PAYLOAD HELPERS ====================

def _parse_json(request):
    try:
        return json.loads(request.body or b"{}"), None
    except ValueError:
        return None, JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)


def _non_negative_int(value, field):
    if value is None:
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"{field} must be a whole number")
    try:
        number = int(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a whole number")
    if number < 0:
        raise ValueError(f"{field} cannot be negative")
    return number


def _variant_from_payload(raw):
    if not isinstance(raw, dict):
        raise ValueError("Each variant must be an object")
    price = _non_negative_int(raw.get("price"), "variant price")
    if price is None:
        raise ValueError("variant price is required")
    in_stock = raw.get("inStock")
    return {
        "size": raw.get("size") or None,
        "color": raw.get("color") or None,
        "pack": raw.get("pack") or None,
        "price": price,
        "stock_qty": _non_negative_int(raw.get("stockQty"), "variant stockQty"),
        "in_stock": in_stock if isinstance(in_stock, bool) else None,
        "sku": raw.get("sku") or None,
        "image": raw.get("image") or None,
    }


def apply_product_payload(product, data, partial=False):
    """
    Copy admin-supplied fields onto ``product``. ``inStock`` from the client is
    ignored; Product.save() derives it.
    """
    if not partial:
        for field in ("name", "price", "category"):
            if data.get(field) in (None, ""):
                raise ValueError(f"{field} is required")

    for key, attr in PRODUCT_TEXT_FIELDS.items():
        if key in data:
            setattr(product, attr, (data.get(key) or "").strip())

    if "price" in data:
        product.price = _non_negative_int(data.get("price"), "price")

    if "status" in data:
        if data["status"] not in (Product.STATUS_ACTIVE, Product.STATUS_DRAFT):
            raise ValueError("status must be 'active' or 'draft'")
        product.status = data["status"]

    for field in PRODUCT_LIST_FIELDS:
        if field in data:
            values = data.get(field) or []
            if not isinstance(values, list):
                raise ValueError(f"{field} must be a list")
            setattr(product, field, [str(v) for v in values])

    if "stockQty" in data:
        product.stock_qty = _non_negative_int(data.get("stockQty"), "stockQty")

    if "variantPricing" in data:
        variants = data.get("variantPricing") or []
        if not isinstance(variants, list):
            raise ValueError("variantPricing must be a list")
        product.variant_pricing = [_variant_from_payload(v) for v in variants]

    return product


# ==================== STOREFRONT ====================

@require_GET
def product_list(request):
    """Active products only; drafts stay admin-visible"""
    products = Product.objects.active()
    category = request.GET.get("category")
    if category:
        products = products.filter(category=category)
    return JsonResponse({"success": True, "products": [p.to_dict() for p in products]})


@require_GET
def product_detail(request, product_id):
    product = Product.objects.active().filter(pk=product_id).first()
    if product is None:
        return JsonResponse({"success": False, "error": "Product not found"}, status=404)
    return JsonResponse({"success": True, "product": product.to_dict()})


# ==================== ADMIN ====================

@admin_required
@require_http_methods(["GET", "POST"])
def admin_products(request):
    if request.method == "GET":
        products = Product.objects.all()[:200]
        return JsonResponse({"success": True, "products": [p.to_dict() for p in products]})

    data, error = _parse_json(request)
    if error:
        return error
    try:
        product = apply_product_payload(Product(), data)
    except ValueError as e:
        return JsonResponse({"success": False, "error": str(e)}, status=400)

    product.save()
    logger.info(f"Product {product.pk} created by {request.user}")
    return JsonResponse({"success": True, "product": product.to_dict()}, status=201)


@admin_required
@require_http_methods(["PUT", "PATCH", "DELETE"])
def admin_product_detail(request, product_id):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        return JsonResponse({"success": False, "error": "Product not found"}, status=404)

    if request.method == "DELETE":
        product.delete()
        logger.info(f"Product {product_id} deleted by {request.user}")
        return JsonResponse({"success": True})

    data, error = _parse_json(request)
    if error:
        return error
    try:
        apply_product_payload(product, data, partial=True)
    except ValueError as e:
        return JsonResponse({"success": False, "error": str(e)}, status=400)

    product.save()
    return JsonResponse({"success": True, "product": product.to_dict()})


@admin_required
@require_POST
def admin_products_bulk_delete(request):
    data, error = _parse_json(request)
    if error:
        return error
    ids = data.get("ids")
    if not isinstance(ids, list) or not ids:
        return JsonResponse({"success": False, "error": "Invalid product IDs"}, status=400)

    valid_ids = []
    for raw in ids:
        try:
            valid_ids.append(int(raw))
        except (TypeError, ValueError):
            continue

    deleted_count, _ = Product.objects.filter(pk__in=valid_ids).delete()
    logger.info(f"Bulk deleted {deleted_count} products")
    return JsonResponse({"success": True, "deletedCount": deleted_count})


@admin_required
@require_http_methods(["PUT"])
def admin_products_bulk_stock(request):
    """Set flat stock counters for several products at once"""
    data, error = _parse_json(request)
    if error:
        return error
    updates = data.get("updates")
    if not isinstance(updates, list):
        return JsonResponse({"success": False, "error": "Updates must be an array"}, status=400)

    matched = 0
    try:
        with transaction.atomic():
            for update in updates:
                product = Product.objects.select_for_update().filter(pk=update.get("productId")).first()
                if product is None:
                    continue
                matched += 1
                product.stock_qty = _non_negative_int(update.get("stockQty"), "stockQty")
                product.save(update_fields=["stock_qty", "in_stock", "updated_at"])
    except (ValueError, AttributeError) as e:
        return JsonResponse({"success": False, "error": str(e)}, status=400)

    return JsonResponse({"success": True, "matchedCount": matched})


@admin_required
@require_POST
def admin_fix_stock_status(request):
    fixed = recompute_in_stock_flags(fix=True)
    return JsonResponse({
        "success": True,
        "fixedCount": len(fixed),
        "message": f"Fixed stock status for {len(fixed)} product(s)",
    })
