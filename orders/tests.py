import hashlib
import hmac
import json
from datetime import timedelta
from unittest.mock import MagicMock, patch

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone

from catalog.models import Product

from . import services
from .exceptions import (
    CarrierError,
    ConfigurationError,
    GatewayError,
    NotFound,
    OutOfStock,
    SignatureInvalid,
    ValidationError,
)
from .models import Order, TimelineEntry
from .totals import calculate_totals

KEY_SECRET = "test_secret"

CUSTOMER = {
    "fullName": "Ravi Kumar",
    "phone": "9876543210",
    "email": "ravi@example.com",
    "addressLine1": "12 MG Road",
    "city": "New Delhi",
    "state": "Delhi",
    "postalCode": "110001",
}


def sign(gateway_order_id, gateway_payment_id, secret=KEY_SECRET):
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def make_product(**kwargs):
    defaults = {"name": "Metal Button", "price": 100000, "category": "Buttons", "stock_qty": 5}
    defaults.update(kwargs)
    return Product.objects.create(**defaults)


def place_order(product, quantity=1, payment_method=Order.PAYMENT_UPI, sku=None, gateway_order_id="order_A"):
    """Place an order; UPI orders get a stored gateway intent unless gateway_order_id is None"""
    item = {"productId": product.pk, "quantity": quantity}
    if sku:
        item["sku"] = sku
    order = services.create_order([item], dict(CUSTOMER), payment_method=payment_method)
    if payment_method == Order.PAYMENT_UPI and gateway_order_id:
        Order.objects.filter(pk=order.pk).update(gateway_order_id=gateway_order_id)
        order.gateway_order_id = gateway_order_id
    return order


def gateway_response(payload, ok=True, status_code=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


@override_settings(GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class TotalsTests(TestCase):
    def test_gst_on_subtotal(self):
        self.assertEqual(calculate_totals(100000), {"shipping": 0, "tax": 18000, "total": 118000})

    def test_tax_rounds_half_up(self):
        # 25 * 0.18 = 4.5
        self.assertEqual(calculate_totals(25)["tax"], 5)

    def test_shipping_override_is_taxed(self):
        totals = calculate_totals(10000, shipping=5000)
        self.assertEqual(totals, {"shipping": 5000, "tax": 2700, "total": 17700})

    def test_negative_shipping_override_ignored(self):
        self.assertEqual(calculate_totals(10000, shipping=-1)["shipping"], 0)


@override_settings(GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class OrderCreationTests(TestCase):
    def test_prices_come_from_catalog(self):
        product = make_product(price=25000)
        order = services.create_order(
            [{"productId": product.pk, "quantity": 2, "price": 1, "name": "Tampered"}],
            dict(CUSTOMER),
        )
        item = order.items.get()
        self.assertEqual(item.unit_price, 25000)
        self.assertEqual(item.name, "Metal Button")
        self.assertEqual(order.subtotal, 50000)
        self.assertEqual(order.tax, 9000)
        self.assertEqual(order.total, 59000)
        self.assertEqual(order.status, Order.STATUS_CREATED)
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)
        self.assertTrue(order.order_number.startswith("ORD-"))

        entry = order.timeline.get()
        self.assertEqual((entry.status, entry.note, entry.updated_by), ("created", "Order created", "system"))

    def test_variant_price_used_for_matching_sku(self):
        product = make_product(
            stock_qty=None,
            variant_pricing=[{"sku": "V1", "size": "Large", "price": 30000, "stock_qty": 10}],
        )
        order = place_order(product, quantity=1, sku="V1")
        item = order.items.get()
        self.assertEqual(item.unit_price, 30000)
        self.assertEqual(item.size, "Large")

    def test_quantity_above_stock_is_rejected(self):
        product = make_product(stock_qty=2)
        with self.assertRaises(OutOfStock):
            place_order(product, quantity=3)
        self.assertFalse(Order.objects.exists())

    def test_draft_product_is_rejected(self):
        product = make_product(status=Product.STATUS_DRAFT)
        with self.assertRaises(ValidationError):
            place_order(product)

    def test_customer_validation(self):
        product = make_product()
        with self.assertRaises(ValidationError):
            services.create_order([{"productId": product.pk, "quantity": 1}], dict(CUSTOMER, phone="12345"))
        with self.assertRaises(ValidationError):
            services.create_order([{"productId": product.pk, "quantity": 1}], dict(CUSTOMER, postalCode="1100"))
        with self.assertRaises(ValidationError):
            services.create_order([], dict(CUSTOMER))

    def test_cash_on_delivery_confirms_and_decrements(self):
        product = make_product(stock_qty=5)
        order = place_order(product, quantity=2, payment_method=Order.PAYMENT_COD)
        self.assertEqual(order.status, Order.STATUS_PROCESSING)
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)
        product.refresh_from_db()
        self.assertEqual(product.stock_qty, 3)

    def test_timeline_entries_are_append_only(self):
        order = place_order(make_product())
        entry = order.timeline.get()
        entry.note = "rewritten"
        with self.assertRaises(ValueError):
            entry.save()


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET, GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class PaymentVerificationTests(TestCase):
    def verify(self, order, gateway_order_id="order_A", payment_id="pay_1", signature=None):
        signature = signature or sign(gateway_order_id, payment_id)
        return services.verify_payment(order.pk, gateway_order_id, payment_id, signature)

    def test_verified_payment_decrements_stock_once(self):
        product = make_product(stock_qty=5)
        order = place_order(product, quantity=3)

        self.verify(order)
        order.refresh_from_db()
        product.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PROCESSING)
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(order.gateway_payment_id, "pay_1")
        self.assertEqual(product.stock_qty, 2)
        self.assertTrue(product.in_stock)
        self.assertEqual(order.timeline.count(), 2)

        # replay
        self.verify(order)
        product.refresh_from_db()
        self.assertEqual(product.stock_qty, 2)
        self.assertEqual(order.timeline.count(), 2)

    def test_variant_stock_clamped_when_oversold(self):
        product = make_product(
            stock_qty=None,
            variant_pricing=[
                {"sku": "V1", "price": 50000, "stock_qty": 6},
                {"sku": "V2", "price": 50000, "stock_qty": 0},
            ],
        )
        order = place_order(product, quantity=5, sku="V1")

        # another sale lands between checkout and payment
        product.variant_pricing = [dict(v, stock_qty=2) if v["sku"] == "V1" else v for v in product.variant_pricing]
        product.save()

        self.verify(order)
        product.refresh_from_db()
        self.assertEqual(product.find_variant("V1")["stock_qty"], 0)
        self.assertFalse(product.in_stock)

    def test_invalid_signature_marks_payment_failed(self):
        product = make_product(stock_qty=5)
        order = place_order(product, quantity=1)

        with self.assertRaises(SignatureInvalid) as ctx:
            self.verify(order, signature="0" * 64)
        self.assertEqual(ctx.exception.message, "Payment verification failed")

        order.refresh_from_db()
        product.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_FAILED)
        self.assertEqual(order.status, Order.STATUS_CREATED)
        self.assertIsNone(order.gateway_payment_id)
        self.assertEqual(product.stock_qty, 5)
        self.assertEqual(order.timeline.last().note, "Payment verification failed")

    def test_retry_after_failed_signature_succeeds(self):
        order = place_order(make_product())
        with self.assertRaises(SignatureInvalid):
            self.verify(order, signature="bad")
        self.verify(order)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)

    def test_invalid_signature_on_paid_order_changes_nothing(self):
        order = place_order(make_product())
        self.verify(order)
        with self.assertRaises(SignatureInvalid):
            self.verify(order, payment_id="pay_2", signature="bad")
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(order.gateway_payment_id, "pay_1")

    def test_gateway_order_must_match_intent(self):
        order = place_order(make_product())
        Order.objects.filter(pk=order.pk).update(gateway_order_id="order_REAL")
        with self.assertRaises(SignatureInvalid):
            self.verify(order, gateway_order_id="order_OTHER")

    def test_order_without_intent_rejects_callback(self):
        product = make_product(stock_qty=5)
        order = place_order(product, gateway_order_id=None)
        with self.assertRaises(SignatureInvalid):
            self.verify(order)
        order.refresh_from_db()
        product.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_FAILED)
        self.assertEqual(order.status, Order.STATUS_CREATED)
        self.assertEqual(product.stock_qty, 5)

    def test_cheap_payment_cannot_settle_another_order(self):
        cheap = place_order(make_product(name="Thread", price=1000), gateway_order_id="order_CHEAP")
        dear_product = make_product(name="Brass Buttons", price=5000000, stock_qty=5)
        dear = place_order(dear_product, gateway_order_id=None)

        self.verify(cheap, gateway_order_id="order_CHEAP", payment_id="pay_cheap")
        with self.assertRaises(SignatureInvalid):
            self.verify(dear, gateway_order_id="order_CHEAP", payment_id="pay_cheap")

        dear.refresh_from_db()
        dear_product.refresh_from_db()
        self.assertNotEqual(dear.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(dear.status, Order.STATUS_CREATED)
        self.assertIsNone(dear.gateway_payment_id)
        self.assertEqual(dear_product.stock_qty, 5)

    def test_payment_id_cannot_settle_two_orders(self):
        first = place_order(make_product(name="A"))
        second = place_order(make_product(name="B"), gateway_order_id="order_B")
        self.verify(first, gateway_order_id="order_A", payment_id="pay_1")
        with self.assertRaises(ValidationError):
            self.verify(second, gateway_order_id="order_B", payment_id="pay_1")
        second.refresh_from_db()
        self.assertEqual(second.payment_status, Order.PAYMENT_PENDING)

    def test_cash_on_delivery_order_cannot_be_verified(self):
        order = place_order(make_product(), payment_method=Order.PAYMENT_COD)
        with self.assertRaises(ValidationError):
            self.verify(order)

    def test_unknown_order(self):
        with self.assertRaises(NotFound):
            services.verify_payment("not-a-uuid", "order_A", "pay_1", sign("order_A", "pay_1"))

    @override_settings(RAZORPAY_KEY_SECRET="")
    def test_missing_secret_is_configuration_error(self):
        order = place_order(make_product())
        with self.assertRaises(ConfigurationError):
            self.verify(order)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET, GST_PERCENT=18,
                   SHIPPING_FEE_PAISE=0, MINIMUM_ORDER_AMOUNT_PAISE=1000)
class PaymentIntentTests(TestCase):
    @patch("orders.razorpay_utils.requests.post")
    def test_intent_charges_stored_total(self, mock_post):
        order = place_order(make_product(price=10000), quantity=2)
        mock_post.return_value = gateway_response({"id": "order_XYZ", "amount": order.total, "currency": "INR"})

        intent = services.create_payment_intent(order.pk)

        self.assertEqual(intent["gateway_order_id"], "order_XYZ")
        self.assertEqual(intent["key_id"], "rzp_test_key")
        sent = mock_post.call_args.kwargs["json"]
        self.assertEqual(sent["amount"], 23600)
        self.assertEqual(sent["receipt"], order.order_number)
        self.assertEqual(mock_post.call_args.kwargs["auth"], ("rzp_test_key", KEY_SECRET))
        order.refresh_from_db()
        self.assertEqual(order.gateway_order_id, "order_XYZ")

    @patch("orders.razorpay_utils.requests.post")
    def test_gateway_failure_leaves_order_untouched(self, mock_post):
        order = place_order(make_product(), gateway_order_id=None)
        mock_post.return_value = gateway_response({"error": {"description": "Authentication failed"}}, ok=False, status_code=401)

        with self.assertRaises(GatewayError) as ctx:
            services.create_payment_intent(order.pk)
        self.assertEqual(ctx.exception.message, "Authentication failed")
        order.refresh_from_db()
        self.assertIsNone(order.gateway_order_id)

    @patch("orders.razorpay_utils.requests.post")
    def test_amount_below_minimum_never_reaches_gateway(self, mock_post):
        order = place_order(make_product(price=500))
        with self.assertRaises(ValidationError):
            services.create_payment_intent(order.pk)
        mock_post.assert_not_called()

    @override_settings(RAZORPAY_KEY_ID="")
    @patch("orders.razorpay_utils.requests.post")
    def test_missing_keys(self, mock_post):
        order = place_order(make_product())
        with self.assertRaises(ConfigurationError):
            services.create_payment_intent(order.pk)
        mock_post.assert_not_called()

    @patch("orders.razorpay_utils.requests.post")
    def test_paid_order_has_no_new_intent(self, mock_post):
        order = place_order(make_product())
        services.verify_payment(order.pk, "order_A", "pay_1", sign("order_A", "pay_1"))
        with self.assertRaises(ValidationError):
            services.create_payment_intent(order.pk)
        mock_post.assert_not_called()


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET, PENDING_PAYMENT_WINDOW_MINUTES=15)
class StaleOrderTests(TestCase):
    def backdate(self, order, minutes):
        Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))
        order.refresh_from_db()

    def test_unpaid_order_cancelled_on_read(self):
        order = place_order(make_product())
        self.backdate(order, 16)

        tracked = services.track_order(order.pk, CUSTOMER["phone"])

        self.assertEqual(tracked.status, Order.STATUS_CANCELLED)
        self.assertEqual(tracked.payment_status, Order.PAYMENT_FAILED)
        self.assertEqual(tracked.timeline.last().status, Order.STATUS_CANCELLED)

    def test_order_inside_window_is_kept(self):
        order = place_order(make_product())
        self.backdate(order, 14)
        self.assertFalse(services.expire_if_stale(order))
        self.assertEqual(order.status, Order.STATUS_CREATED)

    def test_bulk_sweep_skips_cash_on_delivery_and_paid(self):
        product = make_product(stock_qty=50)
        stale = place_order(product)
        cod = place_order(product, payment_method=Order.PAYMENT_COD)
        paid = place_order(product)
        services.verify_payment(paid.pk, "order_A", "pay_1", sign("order_A", "pay_1"))
        for order in (stale, cod, paid):
            self.backdate(order, 30)

        self.assertEqual(services.expire_stale_orders(), 1)
        self.assertEqual(Order.objects.get(pk=stale.pk).status, Order.STATUS_CANCELLED)
        self.assertEqual(Order.objects.get(pk=cod.pk).status, Order.STATUS_PROCESSING)
        self.assertEqual(Order.objects.get(pk=paid.pk).status, Order.STATUS_PROCESSING)

    def test_late_payment_revives_cancelled_order(self):
        product = make_product(stock_qty=5)
        order = place_order(product, quantity=1)
        self.backdate(order, 20)
        services.expire_if_stale(order)

        services.verify_payment(order.pk, "order_A", "pay_1", sign("order_A", "pay_1"))
        order.refresh_from_db()
        product.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PROCESSING)
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(product.stock_qty, 4)

    def test_expired_order_cannot_start_payment(self):
        order = place_order(make_product())
        self.backdate(order, 20)
        with self.assertRaises(ValidationError):
            services.create_payment_intent(order.pk)

    def test_tracking_requires_matching_phone(self):
        order = place_order(make_product())
        with self.assertRaises(NotFound):
            services.track_order(order.pk, "9123456780")


@override_settings(GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class FulfillmentTests(TestCase):
    def setUp(self):
        self.order = place_order(make_product(), quantity=2, payment_method=Order.PAYMENT_COD)

    def test_mark_shipped(self):
        order = services.mark_shipped(self.order.pk, "AWB100", carrier="Blue Dart")
        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.fulfillment_status, "fulfilled")
        self.assertIsNotNone(order.shipped_at)
        self.assertEqual(order.fulfilled_items[0]["quantity"], 2)
        self.assertEqual(order.timeline.last().status, Order.STATUS_SHIPPED)

    def test_tracking_update_on_shipped_order(self):
        services.mark_shipped(self.order.pk, "AWB100")
        order = services.mark_shipped(self.order.pk, "AWB200")
        self.assertEqual(order.tracking_number, "AWB200")
        self.assertEqual(order.timeline.last().note, "Tracking updated: AWB200")

    def test_cannot_ship_unconfirmed_order(self):
        order = place_order(make_product(name="Other"))
        with self.assertRaises(ValidationError):
            services.mark_shipped(order.pk, "AWB100")

    def test_mark_delivered_requires_shipment(self):
        with self.assertRaises(ValidationError):
            services.mark_delivered(self.order.pk)
        services.mark_shipped(self.order.pk, "AWB100")
        order = services.mark_delivered(self.order.pk)
        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertIsNotNone(order.delivered_at)

    def test_admin_raw_status_change_is_logged(self):
        order = services.apply_admin_update(self.order.pk, {"status": "cancelled", "notes": "Customer called"}, "staff")
        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(order.notes, "Customer called")
        entry = order.timeline.last()
        self.assertEqual(entry.note, "Status changed from processing to cancelled")
        self.assertEqual(entry.updated_by, "staff")


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET, GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class RefundTests(TestCase):
    def setUp(self):
        self.order = place_order(make_product(price=10000))
        services.verify_payment(self.order.pk, "order_A", "pay_1", sign("order_A", "pay_1"))

    def test_partial_then_full_refund(self):
        order = services.refund_order(self.order.pk, 5000)
        self.assertEqual(order.payment_status, Order.PAYMENT_PARTIALLY_REFUNDED)
        self.assertEqual(order.status, Order.STATUS_PROCESSING)

        order = services.refund_order(self.order.pk)
        self.assertEqual(order.refunded_amount, order.total)
        self.assertEqual(order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(order.status, Order.STATUS_REFUNDED)

    def test_refund_cannot_exceed_total(self):
        with self.assertRaises(ValidationError):
            services.refund_order(self.order.pk, self.order.total + 1)

    def test_unpaid_order_cannot_be_refunded(self):
        order = place_order(make_product(name="Unpaid"))
        with self.assertRaises(ValidationError):
            services.refund_order(order.pk)


@override_settings(DELHIVERY_API_TOKEN="test-token", DELHIVERY_PICKUP_LOCATION="Main Warehouse", DELHIVERY_WEBHOOK_TOKEN="")
class CarrierTests(TestCase):
    def setUp(self):
        self.order = place_order(make_product(), quantity=1, payment_method=Order.PAYMENT_COD)

    def ship(self, waybill="WB123"):
        return services.mark_shipped(self.order.pk, waybill, carrier="Delhivery")

    def test_delivered_webhook(self):
        self.ship()
        order = services.handle_carrier_webhook({"waybill": "WB123", "status": "Delivered"})
        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertEqual(order.carrier_status, "Delivered")
        entry = order.timeline.last()
        self.assertEqual(entry.status, Order.STATUS_DELIVERED)
        self.assertEqual(entry.updated_by, "carrier")

    def test_delivered_before_any_scan_fills_fulfillment(self):
        Order.objects.filter(pk=self.order.pk).update(carrier_waybill="WB555")
        order = services.handle_carrier_webhook({"waybill": "WB555", "status": "Delivered"})
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertEqual(order.fulfillment_status, "fulfilled")
        self.assertIsNotNone(order.shipped_at)
        self.assertIsNotNone(order.delivered_at)
        self.assertEqual(order.fulfilled_items[0]["quantity"], 1)

    def test_repeated_status_adds_no_entry(self):
        self.ship()
        services.handle_carrier_webhook({"waybill": "WB123", "status": "Delivered"})
        count = TimelineEntry.objects.filter(order=self.order).count()
        services.handle_carrier_webhook({"Waybill": "WB123", "Status": "Delivered"})
        self.assertEqual(TimelineEntry.objects.filter(order=self.order).count(), count)

    def test_nested_payload_in_transit(self):
        Order.objects.filter(pk=self.order.pk).update(carrier_waybill="WB777")
        order = services.handle_carrier_webhook({"shipment": {"waybill": "WB777", "status": "In Transit"}})
        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.timeline.last().note, "Shipment update: In Transit")

    def test_other_statuses_only_recorded(self):
        self.ship()
        count = self.order.timeline.count()
        order = services.handle_carrier_webhook({"waybill": "WB123", "status": "Pending"})
        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.carrier_status, "Pending")
        self.assertEqual(order.timeline.count(), count)

    def test_unknown_waybill(self):
        self.assertIsNone(services.handle_carrier_webhook({"waybill": "NOPE", "status": "Delivered"}))
        with self.assertRaises(ValidationError):
            services.handle_carrier_webhook({"status": "Delivered"})

    @patch("orders.delhivery_utils.requests.request")
    def test_create_shipment(self, mock_request):
        mock_request.return_value = gateway_response({"packages": [{"waybill": "WB900", "status": "Success"}]})

        order, shipment = services.create_shipment(self.order.pk)

        self.assertEqual(shipment, {"waybill": "WB900", "status": "Success"})
        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.carrier, "Delhivery")
        self.assertEqual(order.carrier_waybill, "WB900")
        self.assertEqual(order.tracking_url, "https://www.delhivery.com/track/?wb=WB900")

        args, kwargs = mock_request.call_args
        self.assertEqual(args[0], "POST")
        self.assertTrue(args[1].endswith("/cmu/create.json"))
        self.assertTrue(kwargs["data"].startswith("format=json&data="))
        self.assertEqual(kwargs["headers"]["Authorization"], "Token test-token")

    @patch("orders.delhivery_utils.requests.request")
    def test_missing_waybill_leaves_order_untouched(self, mock_request):
        mock_request.return_value = gateway_response({"packages": [], "rmk": "Pincode not serviceable"})
        with self.assertRaises(CarrierError):
            services.create_shipment(self.order.pk)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PROCESSING)
        self.assertIsNone(self.order.tracking_number)

    @patch("orders.delhivery_utils.requests.request")
    def test_shipment_not_created_twice(self, mock_request):
        self.ship()
        with self.assertRaises(ValidationError):
            services.create_shipment(self.order.pk)
        mock_request.assert_not_called()


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET, GST_PERCENT=18, SHIPPING_FEE_PAISE=0)
class OrderViewTests(TestCase):
    def setUp(self):
        cache.clear()
        self.product = make_product(stock_qty=10)
        self.admin = get_user_model().objects.create_user("admin", password="s3cret-pass", is_staff=True)

    def post_json(self, url, payload, **extra):
        return self.client.post(url, json.dumps(payload), content_type="application/json", **extra)

    def test_create_order(self):
        response = self.post_json("/api/orders/", {
            "items": [{"productId": self.product.pk, "quantity": 1}],
            "customer": CUSTOMER,
            "paymentMethod": "UPI",
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["totalInPaise"], 118000)
        self.assertEqual(body["status"], "created")
        self.assertTrue(Order.objects.filter(pk=body["orderId"]).exists())

    @override_settings(SHIPPING_FEE_PAISE=9900)
    def test_client_cannot_set_shipping_fee(self):
        response = self.post_json("/api/orders/", {
            "items": [{"productId": self.product.pk, "quantity": 1}],
            "customer": CUSTOMER,
            "shippingInPaise": 0,
        })
        self.assertEqual(response.status_code, 201)
        order = Order.objects.get(pk=response.json()["orderId"])
        self.assertEqual(order.shipping, 9900)
        # (100000 + 9900) * 18% = 19782
        self.assertEqual(order.total, 100000 + 9900 + 19782)

    def test_create_order_out_of_stock(self):
        response = self.post_json("/api/orders/", {
            "items": [{"productId": self.product.pk, "quantity": 11}],
            "customer": CUSTOMER,
        })
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()["success"])

    def test_order_creation_is_rate_limited(self):
        payload = {"items": [{"productId": self.product.pk, "quantity": 1}], "customer": CUSTOMER}
        statuses = [self.post_json("/api/orders/", payload).status_code for _ in range(6)]
        self.assertEqual(statuses[:5], [201] * 5)
        self.assertEqual(statuses[5], 429)

    def test_track_order(self):
        order = place_order(self.product)
        response = self.client.get("/api/orders/track/", {"orderId": str(order.pk), "phone": CUSTOMER["phone"]})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["orderNumber"], order.order_number)
        self.assertNotIn("customer", response.json()["order"])
        self.assertEqual(response["Cache-Control"], "no-store, no-cache, must-revalidate, max-age=0")

        response = self.client.get("/api/orders/track/", {"orderId": str(order.pk), "phone": "9000000000"})
        self.assertEqual(response.status_code, 404)

    def test_verify_rejects_bad_signature(self):
        order = place_order(self.product)
        response = self.post_json("/api/payments/verify/", {
            "orderId": str(order.pk),
            "razorpay_order_id": "order_A",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "forged",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Payment verification failed")

    def test_verify_accepts_valid_signature(self):
        order = place_order(self.product)
        response = self.post_json("/api/payments/verify/", {
            "orderId": str(order.pk),
            "razorpay_order_id": "order_A",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": sign("order_A", "pay_1"),
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "processing")

    @override_settings(DELHIVERY_WEBHOOK_TOKEN="hook-token")
    def test_webhook_token(self):
        order = place_order(self.product, payment_method=Order.PAYMENT_COD)
        services.mark_shipped(order.pk, "WB1")
        payload = {"waybill": "WB1", "status": "Delivered"}

        self.assertEqual(self.post_json("/api/delhivery/webhook/", payload).status_code, 401)

        response = self.post_json("/api/delhivery/webhook/", payload, HTTP_X_API_KEY="hook-token")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "delivered")

    def test_admin_order_list_requires_staff(self):
        self.assertEqual(self.client.get("/api/admin/orders/").status_code, 401)

    def test_admin_order_list_with_statistics(self):
        place_order(self.product, payment_method=Order.PAYMENT_COD)
        place_order(self.product)
        self.client.force_login(self.admin)

        response = self.client.get("/api/admin/orders/", {"status": "processing"})
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["pagination"]["total"], 1)
        self.assertEqual(body["statistics"]["totalOrders"], 2)
        self.assertEqual(body["statistics"]["pendingOrders"], 1)

    def test_admin_update_and_delete(self):
        order = place_order(self.product, payment_method=Order.PAYMENT_COD)
        self.client.force_login(self.admin)

        response = self.client.put(
            "/api/admin/orders/",
            json.dumps({"orderId": str(order.pk), "status": "shipped", "trackingNumber": "AWB55"}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["order"]["fulfillment"]["trackingNumber"], "AWB55")
        self.assertEqual(response.json()["order"]["timeline"][-1]["updatedBy"], "admin")

        response = self.client.delete(f"/api/admin/orders/{order.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Order.objects.filter(pk=order.pk).exists())

    def test_admin_bulk_delete(self):
        first = place_order(self.product)
        second = place_order(self.product)
        self.client.force_login(self.admin)
        response = self.post_json("/api/admin/orders/bulk-delete/", {"ids": [str(first.pk), str(second.pk), "junk"]})
        self.assertEqual(response.json()["deletedCount"], 2)
