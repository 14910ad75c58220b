# orders/models.py
import time
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


def _iso(value):
    return value.isoformat() if value else None


class OrderQuerySet(models.QuerySet):
    def stale(self, now=None):
        """Unpaid UPI orders left in 'created' past the payment window"""
        now = now or timezone.now()
        cutoff = now - timedelta(minutes=settings.PENDING_PAYMENT_WINDOW_MINUTES)
        return self.filter(
            payment_method=Order.PAYMENT_UPI,
            status=Order.STATUS_CREATED,
            payment_status=Order.PAYMENT_PENDING,
            created_at__lt=cutoff,
        )


class Order(models.Model):
    STATUS_CREATED = "created"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"
    STATUS_CHOICES = [
        (STATUS_CREATED, "Created"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    PAYMENT_UPI = "UPI"
    PAYMENT_COD = "COD"
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_UPI, "UPI"),
        (PAYMENT_COD, "Cash on Delivery"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"
    PAYMENT_PARTIALLY_REFUNDED = "partially_refunded"
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
        (PAYMENT_PARTIALLY_REFUNDED, "Partially Refunded"),
    ]

    FULFILLMENT_CHOICES = [
        ("unfulfilled", "Unfulfilled"),
        ("partial", "Partially Fulfilled"),
        ("fulfilled", "Fulfilled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=40, unique=True, editable=False)

    # Customer snapshot
    full_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=15, db_index=True)
    email = models.EmailField(blank=True, default="")
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=10)
    country = models.CharField(max_length=2, default="IN")
    gstin = models.CharField(max_length=15, blank=True, default="")

    # Pricing (paise); total = subtotal + shipping + tax
    subtotal = models.PositiveIntegerField(default=0)
    shipping = models.PositiveIntegerField(default=0)
    tax = models.PositiveIntegerField(default=0)
    total = models.PositiveIntegerField(default=0)

    # Payment
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_UPI)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING, db_index=True)
    gateway_order_id = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True, null=True, unique=True)
    gateway_signature = models.CharField(max_length=255, blank=True, null=True)
    refunded_amount = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_CREATED, db_index=True)

    # Fulfillment
    fulfillment_status = models.CharField(max_length=20, choices=FULFILLMENT_CHOICES, default="unfulfilled")
    tracking_number = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    carrier = models.CharField(max_length=100, blank=True, null=True)
    tracking_url = models.URLField(max_length=500, blank=True, null=True)
    shipped_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    estimated_delivery = models.DateTimeField(blank=True, null=True)
    fulfilled_items = models.JSONField(default=list, blank=True)
    carrier_waybill = models.CharField(max_length=100, blank=True, null=True, db_index=True)
    carrier_status = models.CharField(max_length=100, blank=True, null=True)

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="orders_status_created_idx"),
            models.Index(fields=["payment_method", "payment_status", "status"], name="orders_payment_state_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.order_number:
            tail = str(int(time.time() * 1000))[-8:]
            sequence = 1
            candidate = f"ORD-{tail}-{sequence:03d}"
            while Order.objects.filter(order_number=candidate).exists():
                sequence += 1
                candidate = f"ORD-{tail}-{sequence:03d}"
            self.order_number = candidate
        super().save(*args, **kwargs)

    def is_stale(self, now=None):
        if (self.payment_method, self.status, self.payment_status) != (
            self.PAYMENT_UPI, self.STATUS_CREATED, self.PAYMENT_PENDING
        ):
            return False
        now = now or timezone.now()
        return self.created_at < now - timedelta(minutes=settings.PENDING_PAYMENT_WINDOW_MINUTES)

    @property
    def is_paid(self):
        return self.payment_status == self.PAYMENT_PAID

    def customer_dict(self):
        return {
            "fullName": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
            "gstin": self.gstin,
        }

    def fulfillment_dict(self):
        return {
            "status": self.fulfillment_status,
            "trackingNumber": self.tracking_number,
            "carrier": self.carrier,
            "trackingUrl": self.tracking_url,
            "shippedAt": _iso(self.shipped_at),
            "deliveredAt": _iso(self.delivered_at),
            "estimatedDelivery": _iso(self.estimated_delivery),
            "fulfilledItems": self.fulfilled_items or [],
            "carrierWaybill": self.carrier_waybill,
            "carrierStatus": self.carrier_status,
        }

    def to_tracking_dict(self):
        """What a customer sees when looking up their own order"""
        return {
            "id": str(self.id),
            "orderNumber": self.order_number,
            "status": self.status,
            "items": [item.to_dict() for item in self.items.all()],
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "payment": {
                "method": self.payment_method,
                "status": self.payment_status,
            },
            "fulfillment": self.fulfillment_dict(),
            "timeline": [entry.to_dict() for entry in self.timeline.all()],
            "createdAt": _iso(self.created_at),
        }

    def to_dict(self):
        data = self.to_tracking_dict()
        data.update({
            "customer": self.customer_dict(),
            "payment": {
                "method": self.payment_method,
                "status": self.payment_status,
                "gatewayOrderId": self.gateway_order_id,
                "gatewayPaymentId": self.gateway_payment_id,
                "refundedAmount": self.refunded_amount,
            },
            "notes": self.notes,
            "updatedAt": _iso(self.updated_at),
        })
        return data

    def __str__(self):
        return f"{self.order_number} - {self.full_name}"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    position = models.PositiveIntegerField(default=0)
    product_id = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    unit_price = models.PositiveIntegerField(help_text="Price per unit in paise")
    quantity = models.PositiveIntegerField(default=1)
    image = models.CharField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=50, blank=True, default="")
    sku = models.CharField(max_length=100, blank=True, null=True)
    size = models.CharField(max_length=50, blank=True, null=True)
    color = models.CharField(max_length=50, blank=True, null=True)
    pack = models.CharField(max_length=50, blank=True, null=True)

    class Meta:
        ordering = ["position", "id"]

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_dict(self):
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
            "image": self.image,
            "category": self.category,
            "sku": self.sku,
            "size": self.size,
            "color": self.color,
            "pack": self.pack,
        }

    def __str__(self):
        return f"{self.name} x {self.quantity}"


class TimelineEntry(models.Model):
    order = models.ForeignKey(Order, related_name="timeline", on_delete=models.CASCADE)
    status = models.CharField(max_length=20)
    note = models.CharField(max_length=500, blank=True, default="")
    updated_by = models.CharField(max_length=100, default="system")
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name_plural = "timeline entries"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Timeline entries are append-only")
        super().save(*args, **kwargs)

    def to_dict(self):
        return {
            "status": self.status,
            "timestamp": _iso(self.timestamp),
            "note": self.note,
            "updatedBy": self.updated_by,
        }

    def __str__(self):
        return f"{self.order_id} {self.status} by {self.updated_by}"
