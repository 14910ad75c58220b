# orders/services.py
"""
Order lifecycle: creation, payment settlement, fulfillment and the lazy
expiry of unpaid orders.

Every transition locks the order row (``select_for_update``) inside
``transaction.atomic()`` and appends exactly one timeline entry.
"""
import logging
import re
import uuid

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from catalog.models import Product
from catalog.stock import decrement_product_stock

from .delhivery_utils import TRACKING_URL, DelhiveryAPI
from .exceptions import CarrierError, NotFound, OutOfStock, SignatureInvalid, ValidationError
from .models import Order, OrderItem, TimelineEntry
from .razorpay_utils import RazorpayAPI
from .totals import calculate_totals

logger = logging.getLogger(__name__)

REQUIRED_CUSTOMER_FIELDS = {
    "fullName": "full_name",
    "phone": "phone",
    "addressLine1": "address_line1",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
}
OPTIONAL_CUSTOMER_FIELDS = {
    "email": "email",
    "addressLine2": "address_line2",
    "country": "country",
    "gstin": "gstin",
}

SETTLED_PAYMENT_STATUSES = (
    Order.PAYMENT_PAID,
    Order.PAYMENT_REFUNDED,
    Order.PAYMENT_PARTIALLY_REFUNDED,
)


# ==================== VALIDATION HELPERS ====================

def validate_phone_number(phone):
    """Validate Indian mobile number format"""
    pattern = re.compile(r'^[6-9]\d{9}$')
    return pattern.match(phone) is not None


def validate_pincode(pincode):
    """Validate 6-digit pincode"""
    return len(pincode) == 6 and pincode.isdigit()


def _clean_customer(raw):
    if not isinstance(raw, dict):
        raise ValidationError("Customer details are required")

    fields = {}
    for key, attr in REQUIRED_CUSTOMER_FIELDS.items():
        value = str(raw.get(key) or "").strip()
        if not value:
            raise ValidationError(f"{key} is required")
        fields[attr] = value
    for key, attr in OPTIONAL_CUSTOMER_FIELDS.items():
        value = str(raw.get(key) or "").strip()
        if value:
            fields[attr] = value

    if not validate_phone_number(fields["phone"]):
        raise ValidationError("Invalid mobile number")
    if not validate_pincode(fields["postal_code"]):
        raise ValidationError("Invalid pincode")
    return fields


def _parse_quantity(value):
    if isinstance(value, bool):
        raise ValidationError("Invalid quantity")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid quantity")
    if quantity < 1:
        raise ValidationError("Invalid quantity")
    return quantity


def validate_cart_against_catalog(items):
    """
    Resolve cart lines against the catalog and return (lines, subtotal).
    Name, image and price always come from the product (variant price when
    the SKU matches), never from the client.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("No items in order")

    lines = []
    subtotal = 0
    for position, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError("Invalid order item")
        product_id = raw.get("productId")
        quantity = _parse_quantity(raw.get("quantity", 1))

        try:
            product = Product.objects.active().filter(pk=int(product_id)).first()
        except (TypeError, ValueError):
            product = None
        if product is None:
            raise ValidationError(f"Product not found: {product_id}")

        sku = raw.get("sku") or None
        variant = product.find_variant(sku)
        if variant is not None:
            stock_qty = variant.get("stock_qty")
            unit_price = variant.get("price") or product.price
        else:
            stock_qty = None if product.has_variants else product.stock_qty
            unit_price = product.price

        if isinstance(stock_qty, int) and stock_qty < quantity:
            label = "selected variant of " if variant is not None else ""
            raise OutOfStock(f"Insufficient stock for {label}{product.name}")

        lines.append({
            "position": position,
            "product_id": str(product.pk),
            "name": product.name,
            "unit_price": int(unit_price),
            "quantity": quantity,
            "image": (variant or {}).get("image") or product.image,
            "category": product.category,
            "sku": sku,
            "size": (variant or {}).get("size") or raw.get("size") or None,
            "color": (variant or {}).get("color") or raw.get("color") or None,
            "pack": (variant or {}).get("pack") or raw.get("pack") or None,
        })
        subtotal += int(unit_price) * quantity

    return lines, subtotal


# ==================== TIMELINE ====================

def append_timeline(order, status, note="", updated_by="system"):
    return TimelineEntry.objects.create(order=order, status=status, note=note, updated_by=updated_by)


def _lock_order(order_id):
    try:
        order_uuid = uuid.UUID(str(order_id))
    except ValueError:
        raise NotFound()
    order = Order.objects.select_for_update().filter(pk=order_uuid).first()
    if order is None:
        raise NotFound()
    return order


def get_order(order_id):
    try:
        order_uuid = uuid.UUID(str(order_id))
    except ValueError:
        raise NotFound()
    order = Order.objects.filter(pk=order_uuid).first()
    if order is None:
        raise NotFound()
    return order


def _decrement_items(order):
    for item in order.items.all():
        decrement_product_stock(item.product_id, item.quantity, item.sku)


# ==================== ORDER CREATION ====================

def create_order(items, customer, payment_method=Order.PAYMENT_UPI):
    """
    Create an order from a cart. UPI orders wait in 'created' for payment;
    cash-on-delivery orders are confirmed straight away. Shipping is the
    configured flat fee; the client never sets it.
    """
    if payment_method not in (Order.PAYMENT_UPI, Order.PAYMENT_COD):
        raise ValidationError("Invalid payment method")

    customer_fields = _clean_customer(customer)
    lines, subtotal = validate_cart_against_catalog(items)

    totals = calculate_totals(subtotal)

    with transaction.atomic():
        order = Order.objects.create(
            subtotal=subtotal,
            shipping=totals["shipping"],
            tax=totals["tax"],
            total=totals["total"],
            payment_method=payment_method,
            **customer_fields,
        )
        OrderItem.objects.bulk_create([OrderItem(order=order, **line) for line in lines])
        append_timeline(order, Order.STATUS_CREATED, "Order created")

        if payment_method == Order.PAYMENT_COD:
            order.status = Order.STATUS_PROCESSING
            order.save(update_fields=["status", "updated_at"])
            append_timeline(order, Order.STATUS_PROCESSING, "Cash on delivery order confirmed")
            _decrement_items(order)

    logger.info(f"Order {order.order_number} created ({payment_method}, total {order.total} paise)")
    return order


# ==================== STALE ORDER SWEEP ====================

def expire_stale_orders(now=None):
    """Cancel every unpaid UPI order past the payment window. Returns the count."""
    now = now or timezone.now()
    with transaction.atomic():
        stale_ids = list(Order.objects.stale(now).select_for_update().values_list("id", flat=True))
        if not stale_ids:
            return 0
        Order.objects.filter(pk__in=stale_ids).update(
            status=Order.STATUS_CANCELLED,
            payment_status=Order.PAYMENT_FAILED,
            updated_at=now,
        )
        TimelineEntry.objects.bulk_create([
            TimelineEntry(
                order_id=order_id,
                status=Order.STATUS_CANCELLED,
                note="Payment not received in time",
                updated_by="system",
                timestamp=now,
            )
            for order_id in stale_ids
        ])
    logger.info(f"Cancelled {len(stale_ids)} unpaid order(s)")
    return len(stale_ids)


def expire_if_stale(order, now=None):
    """Cancel ``order`` if its payment window has lapsed. Returns True when it was cancelled."""
    if not order.is_stale(now):
        return False
    with transaction.atomic():
        locked = _lock_order(order.pk)
        if not locked.is_stale(now):
            order.refresh_from_db()
            return False
        locked.status = Order.STATUS_CANCELLED
        locked.payment_status = Order.PAYMENT_FAILED
        locked.save(update_fields=["status", "payment_status", "updated_at"])
        append_timeline(locked, Order.STATUS_CANCELLED, "Payment not received in time")
    order.refresh_from_db()
    logger.info(f"Order {order.order_number} cancelled: payment window expired")
    return True


def track_order(order_id, phone):
    """Customer lookup: both the order id and the phone on the order must match"""
    order_id = str(order_id or "").strip()
    phone = str(phone or "").strip()
    if not order_id or not phone:
        raise ValidationError("Order ID and Phone Number are required")
    try:
        order_uuid = uuid.UUID(order_id)
    except ValueError:
        order_uuid = None
    order = Order.objects.filter(pk=order_uuid, phone=phone).first() if order_uuid else None
    if order is None:
        raise NotFound("Order not found. Please check your Order ID and Phone Number.")
    expire_if_stale(order)
    return order


# ==================== PAYMENT ====================

def create_payment_intent(order_id):
    """Create the gateway order for an unpaid UPI order, charging the stored total"""
    order = get_order(order_id)
    expire_if_stale(order)

    if order.payment_method != Order.PAYMENT_UPI:
        raise ValidationError("Order does not take online payment")
    if order.payment_status in SETTLED_PAYMENT_STATUSES:
        raise ValidationError("Order is already paid")
    if order.status == Order.STATUS_CANCELLED:
        raise ValidationError("Order has expired. Please place a new order.")
    if order.status != Order.STATUS_CREATED:
        raise ValidationError("Order is not awaiting payment")

    api = RazorpayAPI()
    intent = api.create_order(order.total, order.order_number)

    Order.objects.filter(pk=order.pk).update(gateway_order_id=intent["gateway_order_id"], updated_at=timezone.now())
    order.gateway_order_id = intent["gateway_order_id"]
    intent["key_id"] = api.key_id
    return intent


def verify_payment(order_id, gateway_order_id, gateway_payment_id, signature):
    """
    Settle a UPI payment. On a valid signature the order moves to
    'processing' and stock is decremented in the same transaction; a
    replay of an already-settled payment changes nothing.
    """
    if not order_id or not gateway_order_id or not gateway_payment_id or not signature:
        raise ValidationError("Missing payment details")

    is_valid = RazorpayAPI().verify_signature(gateway_order_id, gateway_payment_id, signature)
    rejected = False

    try:
        with transaction.atomic():
            order = _lock_order(order_id)

            if order.payment_method != Order.PAYMENT_UPI:
                raise ValidationError("Order does not take online payment")

            # the callback must settle the intent created for this order's own total
            if not order.gateway_order_id or order.gateway_order_id != gateway_order_id:
                logger.warning(f"Gateway order mismatch for {order.order_number}")
                is_valid = False

            if order.payment_status in SETTLED_PAYMENT_STATUSES:
                if not is_valid:
                    raise SignatureInvalid()
                if order.gateway_payment_id != gateway_payment_id:
                    logger.warning(f"Order {order.order_number} already settled by another payment")
                else:
                    logger.info(f"Order {order.order_number} already processed")
                return order

            if not is_valid:
                order.payment_status = Order.PAYMENT_FAILED
                if order.status != Order.STATUS_CANCELLED:
                    order.status = Order.STATUS_CREATED
                order.save(update_fields=["payment_status", "status", "updated_at"])
                append_timeline(order, order.status, "Payment verification failed")
                rejected = True
            else:
                revived = order.status == Order.STATUS_CANCELLED
                order.payment_status = Order.PAYMENT_PAID
                order.status = Order.STATUS_PROCESSING
                order.gateway_order_id = gateway_order_id
                order.gateway_payment_id = gateway_payment_id
                order.gateway_signature = signature
                order.save()
                note = "Payment received after expiry" if revived else "Payment verified"
                append_timeline(order, Order.STATUS_PROCESSING, note)
                _decrement_items(order)
    except IntegrityError:
        logger.error(f"Payment {gateway_payment_id} is already linked to another order")
        raise ValidationError("Payment already used for another order")

    if rejected:
        logger.warning(f"Payment signature rejected for {order.order_number}")
        raise SignatureInvalid()

    logger.info(f"Payment verified for {order.order_number}")
    return order


# ==================== FULFILLMENT ====================

def _mark_fulfilled(order, now):
    order.fulfillment_status = "fulfilled"
    order.shipped_at = order.shipped_at or now
    order.fulfilled_items = [
        {"itemIndex": index, "quantity": item.quantity, "fulfilledAt": now.isoformat()}
        for index, item in enumerate(order.items.all())
    ]


def _ship(order, tracking_number, carrier=None, tracking_url=None, updated_by="admin", note=None):
    """Apply a shipment to an already locked order"""
    now = timezone.now()
    if order.status == Order.STATUS_PROCESSING:
        order.status = Order.STATUS_SHIPPED
        _mark_fulfilled(order, now)
        note = note or f"Shipped via {carrier or 'courier'}. Tracking: {tracking_number}"
    elif order.status == Order.STATUS_SHIPPED:
        note = note or f"Tracking updated: {tracking_number}"
    else:
        raise ValidationError(f"Cannot ship an order in '{order.status}' status")

    order.tracking_number = tracking_number
    order.carrier = carrier or order.carrier
    order.tracking_url = tracking_url or order.tracking_url
    order.save()
    append_timeline(order, Order.STATUS_SHIPPED, note, updated_by)
    return order


def _deliver(order, updated_by="admin", note="Order delivered"):
    now = timezone.now()
    # a delivered order is always fulfilled
    if order.fulfillment_status != "fulfilled":
        _mark_fulfilled(order, now)
    order.status = Order.STATUS_DELIVERED
    order.delivered_at = now
    order.save(update_fields=[
        "status", "delivered_at", "fulfillment_status", "shipped_at", "fulfilled_items", "updated_at",
    ])
    append_timeline(order, Order.STATUS_DELIVERED, note, updated_by)
    return order


def mark_shipped(order_id, tracking_number, carrier=None, tracking_url=None, updated_by="admin"):
    tracking_number = str(tracking_number or "").strip()
    if not tracking_number:
        raise ValidationError("Tracking number is required")
    with transaction.atomic():
        order = _lock_order(order_id)
        return _ship(order, tracking_number, carrier, tracking_url, updated_by)


def mark_delivered(order_id, updated_by="admin"):
    with transaction.atomic():
        order = _lock_order(order_id)
        if order.status == Order.STATUS_DELIVERED:
            return order
        if order.status != Order.STATUS_SHIPPED:
            raise ValidationError(f"Cannot deliver an order in '{order.status}' status")
        return _deliver(order, updated_by)


def _refund(order, amount=None, updated_by="admin", note=""):
    if order.payment_status not in (Order.PAYMENT_PAID, Order.PAYMENT_PARTIALLY_REFUNDED):
        raise ValidationError("Only paid orders can be refunded")

    remaining = order.total - order.refunded_amount
    if amount is None:
        amount = remaining
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Refund amount must be a positive number of paise")
    if amount > remaining:
        raise ValidationError(f"Refund exceeds the refundable balance of {remaining} paise")

    order.refunded_amount += amount
    if order.refunded_amount == order.total:
        order.payment_status = Order.PAYMENT_REFUNDED
        order.status = Order.STATUS_REFUNDED
    else:
        order.payment_status = Order.PAYMENT_PARTIALLY_REFUNDED
    order.save(update_fields=["refunded_amount", "payment_status", "status", "updated_at"])
    append_timeline(
        order,
        order.status,
        note or f"Refunded ₹{amount / 100:.2f}",
        updated_by,
    )
    logger.info(f"Refunded {amount} paise on {order.order_number}")
    return order


def refund_order(order_id, amount=None, updated_by="admin", note=""):
    """Record a refund. Without ``amount`` the whole refundable balance is refunded."""
    with transaction.atomic():
        order = _lock_order(order_id)
        return _refund(order, amount, updated_by, note)


def apply_admin_update(order_id, data, updated_by="admin"):
    """
    Admin edits: tracking details, refunds, notes and status changes. Known
    transitions go through their service function; any other status change
    is applied as-is and still recorded on the timeline.
    """
    status = data.get("status")
    valid_statuses = {choice for choice, _ in Order.STATUS_CHOICES}
    if status is not None and status not in valid_statuses:
        raise ValidationError("Invalid status")

    with transaction.atomic():
        order = _lock_order(order_id)

        tracking_number = str(data.get("trackingNumber") or "").strip()
        if tracking_number:
            _ship(order, tracking_number, data.get("carrier"), data.get("trackingUrl"), updated_by)

        if data.get("refundAmount") is not None:
            _refund(order, data.get("refundAmount"), updated_by)

        if status and status != order.status:
            previous = order.status
            if status == Order.STATUS_DELIVERED and previous == Order.STATUS_SHIPPED:
                _deliver(order, updated_by)
            elif status == Order.STATUS_REFUNDED and order.payment_status in (
                Order.PAYMENT_PAID, Order.PAYMENT_PARTIALLY_REFUNDED
            ):
                _refund(order, None, updated_by)
            else:
                order.status = status
                if status == Order.STATUS_DELIVERED:
                    order.delivered_at = timezone.now()
                order.save(update_fields=["status", "delivered_at", "updated_at"])
                append_timeline(order, status, f"Status changed from {previous} to {status}", updated_by)

        update_fields = []
        if "notes" in data:
            order.notes = str(data.get("notes") or "")
            update_fields.append("notes")
        if "estimatedDelivery" in data:
            raw = data.get("estimatedDelivery")
            estimated = parse_datetime(raw) if isinstance(raw, str) else None
            if raw and estimated is None:
                raise ValidationError("Invalid estimatedDelivery")
            order.estimated_delivery = estimated
            update_fields.append("estimated_delivery")
        if update_fields:
            order.save(update_fields=update_fields + ["updated_at"])

    logger.info(f"Order {order.order_number} updated by {updated_by}")
    return order


# ==================== CARRIER ====================

def create_shipment(order_id, pickup_location=None):
    """
    Book a Delhivery pickup for a confirmed order and mark it shipped.
    Returns (order, {"waybill", "status"}).
    """
    pickup_location = (pickup_location or settings.DELHIVERY_PICKUP_LOCATION or "").strip()
    if not pickup_location:
        raise ValidationError("pickupLocation is required")

    order = get_order(order_id)
    if order.tracking_number:
        raise ValidationError("Shipment already created for this order")
    if order.status != Order.STATUS_PROCESSING:
        raise ValidationError(f"Cannot ship an order in '{order.status}' status")

    response = DelhiveryAPI().create_shipment(order, pickup_location)
    packages = response.get("packages") if isinstance(response, dict) else None
    package = packages[0] if isinstance(packages, list) and packages and isinstance(packages[0], dict) else {}
    waybill = str(package.get("waybill") or "").strip()
    carrier_status = package.get("status") or "created"

    if not waybill:
        remark = package.get("remarks") or (response.get("rmk") if isinstance(response, dict) else None)
        logger.error(f"Delhivery returned no waybill for {order.order_number}: {remark}")
        raise CarrierError(str(remark) if remark else "Carrier did not return a waybill")

    with transaction.atomic():
        order = _lock_order(order.pk)
        if order.tracking_number:
            raise ValidationError("Shipment already created for this order")
        order.carrier_waybill = waybill
        order.carrier_status = carrier_status
        _ship(
            order,
            waybill,
            carrier="Delhivery",
            tracking_url=TRACKING_URL.format(waybill=waybill),
            updated_by="system",
            note=f"Shipment created via Delhivery. Waybill: {waybill}",
        )

    logger.info(f"Delhivery shipment {waybill} created for {order.order_number}")
    return order, {"waybill": waybill, "status": carrier_status}


def _payload_value(payload, key):
    shipment = payload.get("shipment") if isinstance(payload.get("shipment"), dict) else {}
    return payload.get(key) or payload.get(key.capitalize()) or shipment.get(key)


def handle_carrier_webhook(payload):
    """
    Apply a Delhivery status push. Returns the matched order, or None for
    a waybill we do not know.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload")

    waybill = str(_payload_value(payload, "waybill") or "").strip()
    carrier_status = _payload_value(payload, "status")
    carrier_status = str(carrier_status).strip() if carrier_status else None
    if not waybill:
        raise ValidationError("Missing waybill")

    with transaction.atomic():
        order = (
            Order.objects.select_for_update()
            .filter(Q(tracking_number=waybill) | Q(carrier_waybill=waybill))
            .first()
        )
        if order is None:
            logger.info(f"Carrier update for unknown waybill {waybill}")
            return None

        if not carrier_status or carrier_status == order.carrier_status:
            return order

        order.carrier_status = carrier_status
        normalized = carrier_status.lower()

        if order.status in (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED):
            order.save(update_fields=["carrier_status", "updated_at"])
        elif normalized == "delivered" and order.status != Order.STATUS_DELIVERED:
            _deliver(order, updated_by="carrier", note="Order delivered (Delhivery)")
            order.save(update_fields=["carrier_status", "updated_at"])
        elif normalized in ("in transit", "shipped") and order.status in (Order.STATUS_PROCESSING, Order.STATUS_SHIPPED):
            if order.status == Order.STATUS_PROCESSING:
                order.status = Order.STATUS_SHIPPED
                _mark_fulfilled(order, timezone.now())
            order.save(update_fields=[
                "carrier_status", "status", "fulfillment_status", "shipped_at", "fulfilled_items", "updated_at",
            ])
            append_timeline(order, Order.STATUS_SHIPPED, f"Shipment update: {carrier_status}", "carrier")
        else:
            order.save(update_fields=["carrier_status", "updated_at"])

    logger.info(f"Carrier status '{carrier_status}' recorded for {order.order_number}")
    return order
