import json
import logging

from django.contrib.auth import authenticate, login, logout
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from .ratelimit import rate_limit

logger = logging.getLogger(__name__)


@require_POST
@rate_limit("admin-login", max_requests=5, window_seconds=15 * 60)
def admin_login(request):
    """Start a staff session for the admin API"""
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        return JsonResponse({"success": False, "error": "Username and password are required"}, status=400)

    user = authenticate(request, username=username, password=password)
    if user is None or not user.is_staff:
        logger.warning(f"Failed admin login for {username}")
        return JsonResponse({"success": False, "error": "Invalid credentials"}, status=401)

    login(request, user)
    logger.info(f"Admin {username} logged in")
    return JsonResponse({"success": True, "username": user.get_username()})


@require_POST
def admin_logout(request):
    logout(request)
    return JsonResponse({"success": True})


@require_GET
def health(request):
    return JsonResponse({"status": "ok"})


@require_GET
@ensure_csrf_cookie
def csrf_token(request):
    """Token for session-authenticated admin writes"""
    return JsonResponse({"csrfToken": get_token(request)})
