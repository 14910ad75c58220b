from django.urls import path
from . import views

urlpatterns = [
    # ============ STOREFRONT ============
    path("api/products/", views.product_list, name="product_list"),
    path("api/products/<int:product_id>/", views.product_detail, name="product_detail"),

    # ============ ADMIN ============
    path("api/admin/products/", views.admin_products, name="admin_products"),
    path("api/admin/products/bulk-delete/", views.admin_products_bulk_delete, name="admin_products_bulk_delete"),
    path("api/admin/products/bulk-stock/", views.admin_products_bulk_stock, name="admin_products_bulk_stock"),
    path("api/admin/products/fix-stock-status/", views.admin_fix_stock_status, name="admin_fix_stock_status"),
    path("api/admin/products/<int:product_id>/", views.admin_product_detail, name="admin_product_detail"),
]
