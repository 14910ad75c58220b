from django.contrib import admin
from django.urls import path, include
from django.views.decorators.csrf import csrf_exempt

from . import views as store_views
from orders import views as order_views  # only for webhook

urlpatterns = [
    # ============ WEBHOOKS ============
    path(
        "api/delhivery/webhook/",
        csrf_exempt(order_views.delhivery_webhook),
        name="delhivery_webhook",
    ),

    # ============ ADMIN SESSION ============
    path("api/admin/login/", csrf_exempt(store_views.admin_login), name="admin_login"),
    path("api/admin/logout/", store_views.admin_logout, name="admin_logout"),
    path("api/admin/csrf/", store_views.csrf_token, name="csrf_token"),
    path("api/health/", store_views.health, name="health"),

    # ============ APPS ============
    # Mounted at root so URLs are exactly /api/orders/..., /api/products/...
    path("", include("orders.urls")),
    path("", include("catalog.urls")),
    path("", include("enquiries.urls")),
    path("", include("blog.urls")),

    # ============ DJANGO ADMIN ============
    path("admin/", admin.site.urls),
]
