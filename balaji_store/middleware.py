# balaji_store/middleware.py
from django.http import HttpRequest


class SecurityHeadersMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        response['X-Content-Type-Options'] = 'nosniff'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response['X-Frame-Options'] = 'DENY'
        if not request.path.startswith('/admin/'):
            response['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        return response


class CacheControlMiddleware:
    # Order, payment and admin responses carry customer data and must never be cached
    NO_STORE_PREFIXES = ('/api/payments/', '/api/orders/', '/api/admin/', '/api/delhivery/')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest):
        response = self.get_response(request)

        if request.path.startswith(self.NO_STORE_PREFIXES):
            response['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
            response['Pragma'] = 'no-cache'
            response['Expires'] = '0'

        return response
