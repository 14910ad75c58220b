# blog/models.py
import re

from django.db import models
from django.utils import timezone
from django.utils.text import slugify


class Blog(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
    ]

    CATEGORY_CHOICES = [
        ("Buttons", "Buttons"),
        ("Zippers", "Zippers"),
        ("Elastic", "Elastic"),
        ("Cords", "Cords"),
        ("Industry", "Industry"),
        ("Tips", "Tips"),
        ("Market Trends", "Market Trends"),
        ("Product Updates", "Product Updates"),
    ]

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True, blank=True)
    excerpt = models.TextField()
    content = models.TextField(help_text="HTML content")
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default="Industry")
    featured_image = models.CharField(max_length=500, blank=True, default="")
    author = models.CharField(max_length=100, default="Shree Balaji Enterprises")
    read_time = models.CharField(max_length=30, default="5 min read")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    published_at = models.DateTimeField(blank=True, null=True)

    seo_title = models.CharField(max_length=200, blank=True, default="")
    seo_description = models.CharField(max_length=300, blank=True, default="")
    seo_keywords = models.CharField(max_length=300, blank=True, default="")
    related_products = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-published_at", "-created_at"]
        indexes = [
            models.Index(fields=["status", "published_at"], name="blog_status_published_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.slug:
            clean_title = re.sub(r'[^\w\s-]', '', self.title)
            clean_title = re.sub(r'\s+', ' ', clean_title).strip()
            base_slug = slugify(clean_title) or "post"

            slug = base_slug
            counter = 1
            while self.__class__.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f"{base_slug}-{counter}"
                counter += 1

            self.slug = slug

        # first publish is stamped once; unpublishing keeps the original date
        if self.status == self.STATUS_PUBLISHED and not self.published_at:
            self.published_at = timezone.now()
        super().save(*args, **kwargs)

    def to_dict(self, include_content=True):
        data = {
            "id": self.pk,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "category": self.category,
            "featuredImage": self.featured_image,
            "author": self.author,
            "readTime": self.read_time,
            "status": self.status,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "seoKeywords": self.seo_keywords,
            "relatedProducts": self.related_products or [],
            "tags": self.tags or [],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_content:
            data["content"] = self.content
        return data

    def __str__(self):
        return self.title
