import json
import logging

from django.db.models import Q
from django.http import JsonResponse
from django.utils.text import slugify
from django.views.decorators.http import require_GET, require_http_methods

from balaji_store.decorators import admin_required

from .models import Blog

logger = logging.getLogger(__name__)

TEXT_FIELDS = {
    "title": "title",
    "excerpt": "excerpt",
    "content": "content",
    "featuredImage": "featured_image",
    "author": "author",
    "readTime": "read_time",
    "seoTitle": "seo_title",
    "seoDescription": "seo_description",
    "seoKeywords": "seo_keywords",
}


def _parse_json(request):
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def apply_blog_payload(blog, data, partial=False):
    if not partial:
        for field in ("title", "excerpt", "content"):
            if not str(data.get(field) or "").strip():
                raise ValueError(f"{field} is required")

    for key, attr in TEXT_FIELDS.items():
        if key in data:
            value = str(data.get(key) or "").strip()
            if not value and key in ("title", "excerpt", "content"):
                raise ValueError(f"{key} cannot be empty")
            if value or attr not in ("author", "read_time"):
                setattr(blog, attr, value)

    if data.get("slug"):
        slug = slugify(str(data["slug"]))
        if not slug:
            raise ValueError("Invalid slug")
        if Blog.objects.filter(slug=slug).exclude(pk=blog.pk).exists():
            raise ValueError("A blog post with this slug already exists")
        blog.slug = slug

    if "category" in data:
        if data["category"] not in dict(Blog.CATEGORY_CHOICES):
            raise ValueError("Invalid category")
        blog.category = data["category"]

    if "status" in data:
        if data["status"] not in (Blog.STATUS_DRAFT, Blog.STATUS_PUBLISHED):
            raise ValueError("status must be 'draft' or 'published'")
        blog.status = data["status"]

    for key, attr in (("tags", "tags"), ("relatedProducts", "related_products")):
        if key in data:
            values = data.get(key) or []
            if not isinstance(values, list):
                raise ValueError(f"{key} must be a list")
            setattr(blog, attr, values)

    return blog


# ==================== PUBLIC ====================

@require_GET
def blog_list(request):
    blogs = Blog.objects.filter(status=Blog.STATUS_PUBLISHED).order_by("-published_at")
    category = request.GET.get("category")
    if category:
        blogs = blogs.filter(category=category)

    try:
        page = max(1, int(request.GET.get("page", 1)))
        limit = min(50, max(1, int(request.GET.get("limit", 10))))
    except ValueError:
        page, limit = 1, 10
    total = blogs.count()
    offset = (page - 1) * limit

    return JsonResponse({
        "success": True,
        "blogs": [b.to_dict(include_content=False) for b in blogs[offset:offset + limit]],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
        },
    })


@require_GET
def blog_detail(request, slug):
    blog = Blog.objects.filter(slug=slug, status=Blog.STATUS_PUBLISHED).first()
    if blog is None:
        return JsonResponse({"success": False, "error": "Blog post not found"}, status=404)
    return JsonResponse({"success": True, "blog": blog.to_dict()})


# ==================== ADMIN ====================

@admin_required
@require_http_methods(["GET", "POST"])
def admin_blogs(request):
    if request.method == "GET":
        blogs = Blog.objects.all()
        status = request.GET.get("status")
        category = request.GET.get("category")
        search = (request.GET.get("search") or "").strip()
        if status:
            blogs = blogs.filter(status=status)
        if category:
            blogs = blogs.filter(category=category)
        if search:
            blogs = blogs.filter(
                Q(title__icontains=search) | Q(excerpt__icontains=search) | Q(content__icontains=search)
            )
        return JsonResponse({"success": True, "blogs": [b.to_dict() for b in blogs]})

    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)
    try:
        blog = apply_blog_payload(Blog(), data)
    except ValueError as e:
        return JsonResponse({"success": False, "error": str(e)}, status=400)

    blog.save()
    logger.info(f"Blog post '{blog.slug}' created by {request.user}")
    return JsonResponse({"success": True, "blog": blog.to_dict()}, status=201)


@admin_required
@require_http_methods(["GET", "PUT", "DELETE"])
def admin_blog_detail(request, blog_id):
    blog = Blog.objects.filter(pk=blog_id).first()
    if blog is None:
        return JsonResponse({"success": False, "error": "Blog post not found"}, status=404)

    if request.method == "GET":
        return JsonResponse({"success": True, "blog": blog.to_dict()})

    if request.method == "DELETE":
        blog.delete()
        logger.info(f"Blog post {blog_id} deleted by {request.user}")
        return JsonResponse({"success": True})

    data = _parse_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)
    try:
        apply_blog_payload(blog, data, partial=True)
    except ValueError as e:
        return JsonResponse({"success": False, "error": str(e)}, status=400)

    blog.save()
    return JsonResponse({"success": True, "blog": blog.to_dict()})
