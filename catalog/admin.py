from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'status', 'stock_qty', 'in_stock', 'created_at')
    list_filter = ('category', 'status', 'in_stock')
    search_fields = ('name', 'category')
    ordering = ('-created_at',)

    fieldsets = (
        ('Product Details', {
            'fields': ('name', 'category', 'image', 'description', 'status')
        }),
        ('Options', {
            'fields': ('sizes', 'colors', 'packs')
        }),
        ('Pricing & Stock', {
            'fields': ('price', 'stock_qty', 'variant_pricing', 'in_stock'),
            'description': 'Prices in paise. In-stock is derived from the stock counters on save.',
        }),
        ('Date Information', {
            'fields': ('created_at', 'updated_at'),
        }),
    )

    readonly_fields = ('in_stock', 'created_at', 'updated_at')
