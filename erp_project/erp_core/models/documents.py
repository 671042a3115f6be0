import datetime
from django.core.exceptions import ValidationError
from django.db import models, transaction
from ..managers import TenantManager
from .tenancy import Client

LEGAL_DOC_STATUS = [
    ("active", "Active"),
    ("expired", "Expired"),
    ("archived", "Archived"),
]


# ---------- Legal & compliance documents ----------
class LegalDocument(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    title = models.CharField(max_length=200)
    document_type = models.CharField(max_length=50)  # Contract, License, Insurance
    document_number = models.CharField(max_length=100, blank=True)
    authority = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    issue_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=LEGAL_DOC_STATUS, default="active")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["client", "expiry_date"])]
        ordering = ("client", "expiry_date")

    def __str__(self):
        return f"{self.document_type}: {self.title}"

    def clean(self):
        if self.issue_date and self.expiry_date and self.expiry_date < self.issue_date:
            raise ValidationError("Expiry date cannot be before issue date")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @classmethod
    def expiring_within(cls, client, today, days=30):
        """Active documents whose expiry falls in [today, today + days]."""
        return cls.objects.for_client(client).filter(
            status="active",
            expiry_date__gte=today,
            expiry_date__lte=today + datetime.timedelta(days=days),
        )


# ---------- Delivery challan ----------
class Challan(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    challan_number = models.CharField(max_length=64)
    date = models.DateField()
    sender_name = models.CharField(max_length=200)
    sender_address = models.TextField(blank=True)
    receiver_name = models.CharField(max_length=200)
    receiver_address = models.TextField(blank=True)
    goods_description = models.TextField()
    quantity = models.CharField(max_length=50)
    units = models.CharField(max_length=20, blank=True)
    weight = models.CharField(max_length=50, blank=True)
    batch_number = models.CharField(max_length=64, blank=True)
    truck_number = models.CharField(max_length=32, blank=True)
    driver_name = models.CharField(max_length=200, blank=True)
    courier_service = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "challan_number"],
                name="uq_client_challan_number"),
        ]
        ordering = ("client", "-date")

    def __str__(self):
        return f"Challan {self.challan_number}"

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Inventory ----------
class InventoryItem(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    current_stock = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "name"], name="uq_client_inventory_name"),
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name="inventory_non_negative_stock"),
        ]
        ordering = ("client", "name")

    def __str__(self):
        return f"{self.name} ({self.current_stock})"

    def clean(self):
        if self.current_stock is not None and self.current_stock < 0:
            raise ValidationError("Stock cannot go below zero")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @transaction.atomic
    def adjust_stock(self, delta):
        """Add (or remove, when negative) units and persist."""
        item = InventoryItem.objects.select_for_update().get(pk=self.pk)
        item.current_stock += int(delta)
        item.save(update_fields=["current_stock", "updated_at"])
        self.current_stock = item.current_stock
        return item
