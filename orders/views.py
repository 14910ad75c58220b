# orders/views.py
import hmac
import json
import logging
import uuid
from functools import wraps

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from balaji_store.decorators import admin_required
from balaji_store.ratelimit import rate_limit

from . import services
from .delhivery_utils import DelhiveryAPI, extract_rate_value
from .exceptions import StoreError, ValidationError
from .models import Order

logger = logging.getLogger(__name__)


def _parse_json(request):
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data


def store_errors(view_func):
    """Translate service errors into JSON responses"""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except StoreError as e:
            return JsonResponse({"success": False, "error": e.message}, status=e.status_code)
        except Exception as e:
            logger.error(f"Unhandled error in {view_func.__name__}: {str(e)}", exc_info=True)
            return JsonResponse({"success": False, "error": "Internal server error"}, status=500)
    return _wrapped


# ==================== ORDERS ====================

@csrf_exempt
@require_POST
@rate_limit("orders", max_requests=5, window_seconds=60)
@store_errors
def create_order(request):
    data = _parse_json(request)
    order = services.create_order(
        items=data.get("items"),
        customer=data.get("customer"),
        payment_method=data.get("paymentMethod") or Order.PAYMENT_UPI,
    )
    return JsonResponse({
        "success": True,
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "totalInPaise": order.total,
        "status": order.status,
    }, status=201)


@require_GET
@store_errors
def track_order(request):
    order = services.track_order(request.GET.get("orderId"), request.GET.get("phone"))
    return JsonResponse({"success": True, "order": order.to_tracking_dict()})


# ==================== PAYMENTS ====================

@csrf_exempt
@require_POST
@store_errors
def create_payment(request):
    data = _parse_json(request)
    if not data.get("orderId"):
        raise ValidationError("orderId is required")
    intent = services.create_payment_intent(data["orderId"])
    return JsonResponse({
        "success": True,
        "gatewayOrderId": intent["gateway_order_id"],
        "amount": intent["amount"],
        "currency": intent["currency"],
        "keyId": intent["key_id"],
    })


@csrf_exempt
@require_POST
@store_errors
def verify_payment(request):
    data = _parse_json(request)
    order = services.verify_payment(
        order_id=data.get("orderId"),
        gateway_order_id=data.get("razorpay_order_id") or data.get("gatewayOrderId"),
        gateway_payment_id=data.get("razorpay_payment_id") or data.get("gatewayPaymentId"),
        signature=data.get("razorpay_signature") or data.get("signature"),
    )
    return JsonResponse({
        "success": True,
        "orderId": str(order.id),
        "orderNumber": order.order_number,
        "status": order.status,
    })


# ==================== CARRIER ====================

@require_GET
@store_errors
def delhivery_track(request):
    waybill = (request.GET.get("waybill") or "").strip()
    if not waybill:
        raise ValidationError("Missing waybill")
    return JsonResponse({"success": True, "tracking": DelhiveryAPI().track(waybill)})


@require_GET
@store_errors
def delhivery_pincode(request):
    pin = (request.GET.get("pin") or "").strip()
    if not services.validate_pincode(pin):
        raise ValidationError("Missing or invalid pin")
    return JsonResponse({"success": True, "result": DelhiveryAPI().check_pincode(pin)})


@require_GET
@store_errors
def delhivery_rate(request):
    """GET /api/delhivery/rate/?pin=XXXXXX&weightKg=0.5&cod=0&orderValue=300"""
    pin = (request.GET.get("pin") or "").strip()
    if not services.validate_pincode(pin):
        raise ValidationError("Missing or invalid pin")
    if not settings.DELHIVERY_PICKUP_PIN:
        raise StoreError("Missing DELHIVERY_PICKUP_PIN")

    try:
        weight_kg = float(request.GET.get("weightKg") or settings.DELHIVERY_DEFAULT_WEIGHT_KG)
    except ValueError:
        weight_kg = settings.DELHIVERY_DEFAULT_WEIGHT_KG
    try:
        declared_value = float(request.GET["orderValue"]) if request.GET.get("orderValue") else None
    except ValueError:
        declared_value = None

    raw = DelhiveryAPI().get_rate(
        origin_pin=settings.DELHIVERY_PICKUP_PIN,
        dest_pin=pin,
        weight_kg=weight_kg,
        cod=request.GET.get("cod") == "1",
        declared_value=declared_value,
    )
    rate = extract_rate_value(raw)
    return JsonResponse({
        "success": True,
        "rateInPaise": round(rate * 100) if rate is not None else None,
        "fallbackInPaise": settings.SHIPPING_FEE_PAISE,
        "raw": raw,
    })


@require_POST
@store_errors
def delhivery_webhook(request):
    """Status pushes from Delhivery; mounted csrf-exempt in the root urls"""
    expected = settings.DELHIVERY_WEBHOOK_TOKEN
    if expected:
        incoming = request.headers.get("x-api-key") or ""
        if not hmac.compare_digest(incoming.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("Delhivery webhook rejected: bad token")
            return JsonResponse({"success": False, "error": "Unauthorized"}, status=401)

    order = services.handle_carrier_webhook(_parse_json(request))
    if order is None:
        return JsonResponse({"success": True, "message": "Order not found"})
    return JsonResponse({"success": True, "orderId": str(order.id), "status": order.status})


@admin_required
@require_POST
@store_errors
def delhivery_create_shipment(request):
    data = _parse_json(request)
    if not data.get("orderId"):
        raise ValidationError("Missing required fields: orderId")
    order, shipment = services.create_shipment(data["orderId"], data.get("pickupLocation"))
    return JsonResponse({"success": True, "shipment": shipment, "order": order.to_dict()})


# ==================== ADMIN ====================

def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _order_statistics():
    stats = Order.objects.aggregate(
        total_orders=Count("id"),
        total_revenue=Sum("total"),
        pending_orders=Count("id", filter=Q(status__in=[Order.STATUS_PROCESSING, Order.STATUS_SHIPPED])),
        completed_orders=Count("id", filter=Q(status=Order.STATUS_DELIVERED)),
    )
    return {
        "totalOrders": stats["total_orders"] or 0,
        "totalRevenue": stats["total_revenue"] or 0,
        "pendingOrders": stats["pending_orders"] or 0,
        "completedOrders": stats["completed_orders"] or 0,
    }


@admin_required
@require_http_methods(["GET", "PUT"])
@store_errors
def admin_orders(request):
    if request.method == "PUT":
        data = _parse_json(request)
        if not data.get("orderId"):
            raise ValidationError("Order ID is required")
        order = services.apply_admin_update(data["orderId"], data, updated_by=request.user.get_username())
        return JsonResponse({"success": True, "order": order.to_dict()})

    services.expire_stale_orders()

    page = _positive_int(request.GET.get("page"), 1)
    limit = min(_positive_int(request.GET.get("limit"), 50), 200)
    status = request.GET.get("status")
    search = (request.GET.get("search") or "").strip()

    orders = Order.objects.all()
    if status and status != "all":
        orders = orders.filter(status=status)
    if search:
        orders = orders.filter(
            Q(order_number__icontains=search)
            | Q(full_name__icontains=search)
            | Q(email__icontains=search)
            | Q(phone__icontains=search)
        )

    total = orders.count()
    offset = (page - 1) * limit
    page_orders = orders.prefetch_related("items", "timeline")[offset:offset + limit]

    return JsonResponse({
        "success": True,
        "orders": [order.to_dict() for order in page_orders],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
        "statistics": _order_statistics(),
    })


@admin_required
@require_http_methods(["GET", "PATCH", "DELETE"])
@store_errors
def admin_order_detail(request, order_id):
    if request.method == "PATCH":
        order = services.apply_admin_update(order_id, _parse_json(request), updated_by=request.user.get_username())
        return JsonResponse({"success": True, "order": order.to_dict()})

    order = services.get_order(order_id)
    if request.method == "DELETE":
        order.delete()
        logger.info(f"Order {order.order_number} deleted by {request.user}")
        return JsonResponse({"success": True})

    services.expire_if_stale(order)
    return JsonResponse({"success": True, "order": order.to_dict()})


@admin_required
@require_POST
@store_errors
def admin_orders_bulk_delete(request):
    ids = _parse_json(request).get("ids")
    if not isinstance(ids, list) or not ids:
        raise ValidationError("Invalid order IDs")

    valid_ids = []
    for raw in ids:
        try:
            valid_ids.append(uuid.UUID(str(raw)))
        except ValueError:
            continue

    orders = Order.objects.filter(pk__in=valid_ids)
    deleted_count = orders.count()
    orders.delete()
    logger.info(f"Bulk deleted {deleted_count} orders")
    return JsonResponse({"success": True, "deletedCount": deleted_count})
