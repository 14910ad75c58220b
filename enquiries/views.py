import json
import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from balaji_store.decorators import admin_required
from balaji_store.ratelimit import rate_limit

from .models import OfflineOrder, QuoteRequest

logger = logging.getLogger(__name__)

QUOTE_FIELDS = {
    "quantity": "quantity",
    "message": "message",
    "productId": "product_id",
    "productName": "product_name",
    "productCategory": "product_category",
    "productSize": "product_size",
    "productColor": "product_color",
    "productPack": "product_pack",
}

PO_OPTIONAL_FIELDS = {
    "address": "address",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
    "gstin": "gstin",
    "poFile": "po_file",
    "poFileName": "po_file_name",
    "itemDescription": "item_description",
    "notes": "notes",
}


def _parse_json(request):
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _text(data, key):
    return str(data.get(key) or "").strip()


def _is_valid_email(value):
    try:
        validate_email(value)
    except ValidationError:
        return False
    return True


def _paginate(request, queryset):
    try:
        page = max(1, int(request.GET.get("page", 1)))
        limit = min(200, max(1, int(request.GET.get("limit", 50))))
    except ValueError:
        page, limit = 1, 50
    total = queryset.count()
    offset = (page - 1) * limit
    return queryset[offset:offset + limit], {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }


# ==================== PUBLIC ====================

@csrf_exempt
@require_POST
@rate_limit("enquiries", max_requests=10, window_seconds=60)
def submit_quote_request(request):
    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    required = {key: _text(data, key) for key in ("companyName", "contactName", "email", "phone")}
    if not all(required.values()):
        return JsonResponse(
            {"success": False, "error": "Company name, contact name, email, and phone are required"},
            status=400,
        )
    if not _is_valid_email(required["email"]):
        return JsonResponse({"success": False, "error": "Invalid email address"}, status=400)

    quote = QuoteRequest.objects.create(
        company_name=required["companyName"],
        contact_name=required["contactName"],
        email=required["email"],
        phone=required["phone"],
        source="website",
        **{attr: _text(data, key) for key, attr in QUOTE_FIELDS.items()},
    )
    logger.info(f"Quote request {quote.pk} received from {quote.company_name}")
    return JsonResponse({
        "success": True,
        "quoteRequestId": quote.pk,
        "message": "Quote request submitted successfully",
    }, status=201)


@csrf_exempt
@require_POST
@rate_limit("enquiries", max_requests=10, window_seconds=60)
def submit_purchase_order(request):
    """Offline PO: the document itself is uploaded elsewhere and referenced by URL"""
    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    required = {key: _text(data, key) for key in ("companyName", "contactPerson", "email", "phone")}
    if not all(required.values()):
        return JsonResponse(
            {"success": False, "error": "Company name, contact person, email, and phone are required"},
            status=400,
        )
    if not _is_valid_email(required["email"]):
        return JsonResponse({"success": False, "error": "Invalid email address"}, status=400)

    po_number = _text(data, "poNumber")
    if not po_number:
        return JsonResponse({"success": False, "error": "PO Number is required"}, status=400)

    optional = {attr: _text(data, key) for key, attr in PO_OPTIONAL_FIELDS.items()}
    if not optional["po_file"] and not optional["item_description"]:
        return JsonResponse(
            {"success": False, "error": "Please upload a Purchase Order file or provide item description"},
            status=400,
        )

    po = OfflineOrder.objects.create(
        company_name=required["companyName"],
        contact_person=required["contactPerson"],
        email=required["email"],
        phone=required["phone"],
        po_number=po_number,
        **optional,
    )
    logger.info(f"Offline PO {po.po_number} received from {po.company_name}")
    return JsonResponse({
        "success": True,
        "message": "Purchase Order submitted successfully",
        "orderId": po.pk,
    }, status=201)


# ==================== ADMIN ====================

@admin_required
@require_GET
def admin_quote_requests(request):
    quotes = QuoteRequest.objects.all()
    status = request.GET.get("status")
    if status and status != "all":
        quotes = quotes.filter(status=status)
    page, pagination = _paginate(request, quotes)
    return JsonResponse({
        "success": True,
        "quoteRequests": [q.to_dict() for q in page],
        "pagination": pagination,
    })


@admin_required
@require_http_methods(["PATCH", "DELETE"])
def admin_quote_request_detail(request, quote_id):
    quote = QuoteRequest.objects.filter(pk=quote_id).first()
    if quote is None:
        return JsonResponse({"success": False, "error": "Quote request not found"}, status=404)

    if request.method == "DELETE":
        quote.delete()
        return JsonResponse({"success": True})

    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    if "status" in data:
        if data["status"] not in dict(QuoteRequest.STATUS_CHOICES):
            return JsonResponse({"success": False, "error": "Invalid status"}, status=400)
        quote.status = data["status"]
    if "adminNotes" in data:
        quote.admin_notes = str(data.get("adminNotes") or "")
    quote.save()
    return JsonResponse({"success": True, "quoteRequest": quote.to_dict()})


@admin_required
@require_GET
def admin_offline_orders(request):
    orders = OfflineOrder.objects.all()
    status = request.GET.get("status")
    if status and status != "all":
        orders = orders.filter(status=status)
    page, pagination = _paginate(request, orders)
    return JsonResponse({
        "success": True,
        "offlineOrders": [o.to_dict() for o in page],
        "pagination": pagination,
    })


@admin_required
@require_http_methods(["PATCH"])
def admin_offline_order_detail(request, po_id):
    po = OfflineOrder.objects.filter(pk=po_id).first()
    if po is None:
        return JsonResponse({"success": False, "error": "Offline order not found"}, status=404)

    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    if "status" in data:
        if data["status"] not in dict(OfflineOrder.STATUS_CHOICES):
            return JsonResponse({"success": False, "error": "Invalid status"}, status=400)
        po.status = data["status"]
    if "adminNotes" in data:
        po.admin_notes = str(data.get("adminNotes") or "")
    if "linkedOrderId" in data:
        po.linked_order_id = str(data.get("linkedOrderId") or "")
    po.save()
    logger.info(f"Offline PO {po.po_number} updated by {request.user}")
    return JsonResponse({"success": True, "offlineOrder": po.to_dict()})
