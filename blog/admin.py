from django.contrib import admin
from .models import Blog


@admin.register(Blog)
class BlogAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'status', 'author', 'published_at')
    list_filter = ('status', 'category')
    search_fields = ('title', 'excerpt')
    prepopulated_fields = {'slug': ('title',)}
    ordering = ('-created_at',)

    fieldsets = (
        ('Post', {
            'fields': ('title', 'slug', 'category', 'excerpt', 'content', 'featured_image')
        }),
        ('Byline', {
            'fields': ('author', 'read_time')
        }),
        ('Publishing', {
            'fields': ('status', 'published_at')
        }),
        ('SEO', {
            'fields': ('seo_title', 'seo_description', 'seo_keywords', 'tags', 'related_products'),
            'classes': ('collapse',)
        }),
        ('Date Information', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    readonly_fields = ('published_at', 'created_at', 'updated_at')
