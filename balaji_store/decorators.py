from functools import wraps

from django.http import JsonResponse


def admin_required(view_func):
    """JSON counterpart of staff_member_required for the admin API"""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = request.user
        if not user.is_authenticated:
            return JsonResponse({"success": False, "error": "Authentication required"}, status=401)
        if not (user.is_active and user.is_staff):
            return JsonResponse({"success": False, "error": "Admin access required"}, status=403)
        return view_func(request, *args, **kwargs)
    return _wrapped
