import json

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import RequestFactory, TestCase

from .ratelimit import get_client_identifier, hit


class RateLimitTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_hit_counts_down_and_blocks(self):
        results = [hit("unit", max_requests=2, window_seconds=60) for _ in range(3)]
        self.assertEqual(results, [(True, 1), (True, 0), (False, 0)])

    def test_client_identifier_prefers_forwarded_for(self):
        request = RequestFactory().get(
            "/", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1", HTTP_USER_AGENT="curl/8.0"
        )
        self.assertEqual(get_client_identifier(request), "203.0.113.9:curl/8.0")


class AdminSessionTests(TestCase):
    def setUp(self):
        cache.clear()
        get_user_model().objects.create_user("admin", password="s3cret-pass", is_staff=True)
        get_user_model().objects.create_user("shopper", password="s3cret-pass")

    def login(self, username, password):
        return self.client.post(
            "/api/admin/login/",
            json.dumps({"username": username, "password": password}),
            content_type="application/json",
        )

    def test_staff_login_opens_admin_api(self):
        response = self.login("admin", "s3cret-pass")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/admin/orders/").status_code, 200)

        self.client.post("/api/admin/logout/")
        self.assertEqual(self.client.get("/api/admin/orders/").status_code, 401)

    def test_wrong_password_and_non_staff_are_rejected(self):
        self.assertEqual(self.login("admin", "wrong").status_code, 401)
        self.assertEqual(self.login("shopper", "s3cret-pass").status_code, 401)

    def test_login_is_rate_limited(self):
        statuses = [self.login("admin", "wrong").status_code for _ in range(6)]
        self.assertEqual(statuses[:5], [401] * 5)
        self.assertEqual(statuses[5], 429)


class MiddlewareTests(TestCase):
    def test_health_has_security_headers(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.json(), {"status": "ok"})
        self.assertEqual(response["X-Content-Type-Options"], "nosniff")
        self.assertEqual(response["X-Frame-Options"], "DENY")
        self.assertFalse(response.has_header("Pragma"))

    def test_admin_api_is_never_cached(self):
        response = self.client.get("/api/admin/orders/")
        self.assertIn("no-store", response["Cache-Control"])

    def test_csrf_token_endpoint_sets_cookie(self):
        response = self.client.get("/api/admin/csrf/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["csrfToken"])
        self.assertIn("csrftoken", response.cookies)
