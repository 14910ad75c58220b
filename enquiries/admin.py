from django.contrib import admin
from .models import OfflineOrder, QuoteRequest


@admin.register(QuoteRequest)
class QuoteRequestAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'contact_name', 'phone', 'product_name', 'status', 'source', 'created_at')
    list_filter = ('status', 'source', 'created_at')
    search_fields = ('company_name', 'contact_name', 'email', 'phone', 'product_name')
    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        ('Contact', {
            'fields': ('company_name', 'contact_name', 'email', 'phone')
        }),
        ('Request', {
            'fields': ('quantity', 'message', 'source')
        }),
        ('Product', {
            'fields': ('product_id', 'product_name', 'product_category', 'product_size', 'product_color', 'product_pack'),
            'classes': ('collapse',)
        }),
        ('Follow-up', {
            'fields': ('status', 'admin_notes')
        }),
        ('Date Information', {
            'fields': ('created_at', 'updated_at'),
        }),
    )


@admin.register(OfflineOrder)
class OfflineOrderAdmin(admin.ModelAdmin):
    list_display = ('po_number', 'company_name', 'contact_person', 'phone', 'status', 'linked_order_id', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('po_number', 'company_name', 'contact_person', 'email', 'phone', 'gstin')
    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        ('Company', {
            'fields': ('company_name', 'contact_person', 'email', 'phone', 'gstin')
        }),
        ('Address', {
            'fields': ('address', 'city', 'state', 'postal_code'),
            'classes': ('collapse',)
        }),
        ('Purchase Order', {
            'fields': ('po_number', 'po_file', 'po_file_name', 'item_description', 'notes')
        }),
        ('Processing', {
            'fields': ('status', 'admin_notes', 'linked_order_id')
        }),
        ('Date Information', {
            'fields': ('created_at', 'updated_at'),
        }),
    )
