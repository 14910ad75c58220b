from django.contrib import admin

from .models import Order, OrderItem, TimelineEntry
from .services import append_timeline


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ('position', 'name', 'product_id', 'sku', 'size', 'color', 'pack', 'unit_price', 'quantity')
    readonly_fields = fields  # line items are a snapshot taken at checkout
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class TimelineEntryInline(admin.TabularInline):
    model = TimelineEntry
    extra = 0
    fields = ('timestamp', 'status', 'note', 'updated_by')
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "full_name",
        "phone",
        "status",
        "payment_method",
        "payment_status",
        "tracking_number",
        "carrier_status",
        "total",
        "created_at",
    )

    list_filter = (
        "status",
        "payment_method",
        "payment_status",
        "fulfillment_status",
        "created_at",
    )

    search_fields = (
        "order_number",
        "full_name",
        "email",
        "phone",
        "gateway_order_id",
        "gateway_payment_id",
        "tracking_number",
    )

    # Gateway and carrier fields are written by the payment and webhook flows
    readonly_fields = (
        'id',
        'order_number',
        'subtotal',
        'shipping',
        'tax',
        'total',
        'gateway_order_id',
        'gateway_payment_id',
        'gateway_signature',
        'refunded_amount',
        'carrier_waybill',
        'carrier_status',
        'fulfilled_items',
        'created_at',
        'updated_at',
    )

    inlines = [OrderItemInline, TimelineEntryInline]

    fieldsets = (
        ("Order", {
            "fields": ("id", "order_number", "status", "notes")
        }),
        ("Customer Information", {
            "fields": ("full_name", "phone", "email", "gstin")
        }),
        ("Shipping Address", {
            "fields": (
                "address_line1",
                "address_line2",
                "city",
                "state",
                "postal_code",
                "country",
            )
        }),
        ("Payment & Pricing", {
            "fields": (
                "payment_method",
                "payment_status",
                "subtotal",
                "shipping",
                "tax",
                "total",
                "refunded_amount",
            ),
            "description": "Amounts in paise.",
        }),
        ("Razorpay", {
            "fields": ("gateway_order_id", "gateway_payment_id", "gateway_signature"),
            "classes": ("collapse",)
        }),
        ("Fulfillment", {
            "fields": (
                "fulfillment_status",
                "carrier",
                "tracking_number",
                "tracking_url",
                "carrier_waybill",
                "carrier_status",
                "shipped_at",
                "delivered_at",
                "estimated_delivery",
                "fulfilled_items",
            ),
        }),
        ("System Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",)
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related('items', 'timeline')

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if change and "status" in form.changed_data:
            previous = form.initial.get("status")
            append_timeline(obj, obj.status, f"Status changed from {previous} to {obj.status}", request.user.get_username())
