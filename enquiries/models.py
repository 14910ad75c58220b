# enquiries/models.py
from django.db import models


class QuoteRequest(models.Model):
    STATUS_CHOICES = [
        ("new", "New"),
        ("contacted", "Contacted"),
        ("quoted", "Quoted"),
        ("converted", "Converted"),
        ("closed", "Closed"),
    ]

    company_name = models.CharField(max_length=200)
    contact_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20)
    quantity = models.CharField(max_length=100, blank=True, default="")
    message = models.TextField(blank=True, default="")

    # Set when the quote is for a specific product
    product_id = models.CharField(max_length=64, blank=True, default="")
    product_name = models.CharField(max_length=200, blank=True, default="")
    product_category = models.CharField(max_length=50, blank=True, default="")
    product_size = models.CharField(max_length=50, blank=True, default="")
    product_color = models.CharField(max_length=50, blank=True, default="")
    product_pack = models.CharField(max_length=50, blank=True, default="")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="new", db_index=True)
    admin_notes = models.TextField(blank=True, default="")
    source = models.CharField(max_length=50, default="website")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def to_dict(self):
        return {
            "id": self.pk,
            "companyName": self.company_name,
            "contactName": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "quantity": self.quantity,
            "message": self.message,
            "productId": self.product_id,
            "productName": self.product_name,
            "productCategory": self.product_category,
            "productSize": self.product_size,
            "productColor": self.product_color,
            "productPack": self.product_pack,
            "status": self.status,
            "adminNotes": self.admin_notes,
            "source": self.source,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self):
        return f"Quote #{self.pk} - {self.company_name}"


class OfflineOrder(models.Model):
    """A purchase order sent in by a business customer outside the online checkout"""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("reviewed", "Reviewed"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("rejected", "Rejected"),
    ]

    company_name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20)
    address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    postal_code = models.CharField(max_length=10, blank=True, default="")
    gstin = models.CharField(max_length=15, blank=True, default="")

    po_number = models.CharField(max_length=100)
    po_file = models.CharField(max_length=500, blank=True, default="", help_text="URL of the uploaded PO document")
    po_file_name = models.CharField(max_length=255, blank=True, default="")
    item_description = models.TextField(blank=True, default="")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending", db_index=True)
    notes = models.TextField(blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")
    linked_order_id = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def to_dict(self):
        return {
            "id": self.pk,
            "companyName": self.company_name,
            "contactPerson": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "gstin": self.gstin,
            "poNumber": self.po_number,
            "poFile": self.po_file,
            "poFileName": self.po_file_name,
            "itemDescription": self.item_description,
            "status": self.status,
            "notes": self.notes,
            "adminNotes": self.admin_notes,
            "linkedOrderId": self.linked_order_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self):
        return f"PO {self.po_number} - {self.company_name}"
