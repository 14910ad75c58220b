from django.urls import path
from . import views

urlpatterns = [
    # ============ PUBLIC ============
    path("api/blogs/", views.blog_list, name="blog_list"),
    path("api/blogs/<slug:slug>/", views.blog_detail, name="blog_detail"),

    # ============ ADMIN ============
    path("api/admin/blogs/", views.admin_blogs, name="admin_blogs"),
    path("api/admin/blogs/<int:blog_id>/", views.admin_blog_detail, name="admin_blog_detail"),
]
