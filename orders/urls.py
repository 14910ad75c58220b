from django.urls import path
from . import views

urlpatterns = [
    # ============ ORDERS ============
    path("api/orders/", views.create_order, name="create_order"),
    path("api/orders/track/", views.track_order, name="track_order"),

    # ============ PAYMENTS ============
    path("api/payments/order/", views.create_payment, name="create_payment"),
    path("api/payments/verify/", views.verify_payment, name="verify_payment"),

    # ============ DELHIVERY ============
    # webhook is mounted csrf-exempt in balaji_store/urls.py
    path("api/delhivery/track/", views.delhivery_track, name="delhivery_track"),
    path("api/delhivery/pincode/", views.delhivery_pincode, name="delhivery_pincode"),
    path("api/delhivery/rate/", views.delhivery_rate, name="delhivery_rate"),
    path("api/delhivery/create-shipment/", views.delhivery_create_shipment, name="delhivery_create_shipment"),

    # ============ ADMIN ============
    path("api/admin/orders/", views.admin_orders, name="admin_orders"),
    path("api/admin/orders/bulk-delete/", views.admin_orders_bulk_delete, name="admin_orders_bulk_delete"),
    path("api/admin/orders/<str:order_id>/", views.admin_order_detail, name="admin_order_detail"),
]
