from django.urls import path
from . import views

urlpatterns = [
    # ============ PUBLIC ============
    path("api/quote-requests/", views.submit_quote_request, name="submit_quote_request"),
    path("api/po/upload/", views.submit_purchase_order, name="submit_purchase_order"),

    # ============ ADMIN ============
    path("api/admin/quote-requests/", views.admin_quote_requests, name="admin_quote_requests"),
    path("api/admin/quote-requests/<int:quote_id>/", views.admin_quote_request_detail, name="admin_quote_request_detail"),
    path("api/admin/offline-orders/", views.admin_offline_orders, name="admin_offline_orders"),
    path("api/admin/offline-orders/<int:po_id>/", views.admin_offline_order_detail, name="admin_offline_order_detail"),
]
