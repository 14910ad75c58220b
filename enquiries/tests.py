import json

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase

from .models import OfflineOrder, QuoteRequest

QUOTE = {
    "companyName": "Sharma Garments",
    "contactName": "Anil Sharma",
    "email": "anil@sharmagarments.in",
    "phone": "9811122233",
    "quantity": "5000 pcs",
    "productName": "Metal Button",
}

PURCHASE_ORDER = {
    "companyName": "Kapoor Exports",
    "contactPerson": "Neha Kapoor",
    "email": "neha@kapoorexports.in",
    "phone": "9822233344",
    "poNumber": "PO-2291",
    "itemDescription": "2000 x No.5 zippers, black",
}


class EnquiryTests(TestCase):
    def setUp(self):
        cache.clear()

    def post_json(self, url, payload):
        return self.client.post(url, json.dumps(payload), content_type="application/json")

    def test_quote_request_created(self):
        response = self.post_json("/api/quote-requests/", QUOTE)
        self.assertEqual(response.status_code, 201)
        quote = QuoteRequest.objects.get(pk=response.json()["quoteRequestId"])
        self.assertEqual(quote.status, "new")
        self.assertEqual(quote.source, "website")
        self.assertEqual(quote.product_name, "Metal Button")

    def test_quote_request_requires_contact_details(self):
        response = self.post_json("/api/quote-requests/", dict(QUOTE, phone=""))
        self.assertEqual(response.status_code, 400)
        response = self.post_json("/api/quote-requests/", dict(QUOTE, email="not-an-email"))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(QuoteRequest.objects.exists())

    def test_purchase_order_needs_file_or_description(self):
        payload = dict(PURCHASE_ORDER, itemDescription="")
        self.assertEqual(self.post_json("/api/po/upload/", payload).status_code, 400)

        payload["poFile"] = "https://cdn.example.com/po/PO-2291.pdf"
        response = self.post_json("/api/po/upload/", payload)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(OfflineOrder.objects.get().status, "pending")

    def test_purchase_order_requires_po_number(self):
        response = self.post_json("/api/po/upload/", dict(PURCHASE_ORDER, poNumber=""))
        self.assertEqual(response.status_code, 400)

    def test_public_submissions_are_rate_limited(self):
        statuses = [self.post_json("/api/quote-requests/", QUOTE).status_code for _ in range(11)]
        self.assertEqual(statuses.count(201), 10)
        self.assertEqual(statuses[-1], 429)


class EnquiryAdminTests(TestCase):
    def setUp(self):
        self.admin = get_user_model().objects.create_user("admin", password="s3cret-pass", is_staff=True)
        self.quote = QuoteRequest.objects.create(
            company_name="Sharma Garments", contact_name="Anil", email="anil@example.com", phone="9811122233"
        )
        self.po = OfflineOrder.objects.create(
            company_name="Kapoor Exports", contact_person="Neha", email="neha@example.com",
            phone="9822233344", po_number="PO-1", item_description="Zippers",
        )

    def patch_json(self, url, payload):
        return self.client.patch(url, json.dumps(payload), content_type="application/json")

    def test_admin_required(self):
        self.assertEqual(self.client.get("/api/admin/quote-requests/").status_code, 401)
        self.assertEqual(self.client.get("/api/admin/offline-orders/").status_code, 401)

    def test_list_and_update_quote(self):
        self.client.force_login(self.admin)
        response = self.client.get("/api/admin/quote-requests/", {"status": "new"})
        self.assertEqual(response.json()["pagination"]["total"], 1)

        response = self.patch_json(
            f"/api/admin/quote-requests/{self.quote.pk}/",
            {"status": "contacted", "adminNotes": "Called back"},
        )
        self.assertEqual(response.status_code, 200)
        self.quote.refresh_from_db()
        self.assertEqual(self.quote.status, "contacted")
        self.assertEqual(self.quote.admin_notes, "Called back")

        response = self.patch_json(f"/api/admin/quote-requests/{self.quote.pk}/", {"status": "lost"})
        self.assertEqual(response.status_code, 400)

    def test_delete_quote(self):
        self.client.force_login(self.admin)
        response = self.client.delete(f"/api/admin/quote-requests/{self.quote.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(QuoteRequest.objects.exists())

    def test_link_offline_order(self):
        self.client.force_login(self.admin)
        response = self.patch_json(
            f"/api/admin/offline-orders/{self.po.pk}/",
            {"status": "processing", "linkedOrderId": "ORD-12345678-001"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()["offlineOrder"]
        self.assertEqual(body["status"], "processing")
        self.assertEqual(body["linkedOrderId"], "ORD-12345678-001")
