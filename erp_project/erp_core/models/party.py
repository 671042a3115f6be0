from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .tenancy import Client


# ---------- Shared contact fields ----------
class Party(models.Model):
    """Abstract base for customers (AR side) and vendors (AP side)."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)

    # Standard credit terms: invoice due N days after issue
    payment_terms = models.PositiveIntegerField(default=30)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Customer ----------
class Customer(Party):
    customer_code = models.CharField(max_length=32)
    customer_name = models.CharField(max_length=200)
    # Zero means no limit
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        indexes = [models.Index(fields=["client", "customer_name"])]
        constraints = [
            models.UniqueConstraint(
                fields=["client", "customer_code"],
                name="uq_client_customer_code"),
        ]
        ordering = ("client", "customer_name")

    def __str__(self):
        return self.customer_name

    def clean(self):
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError("Credit limit cannot be negative")


# ---------- Vendor ----------
class Vendor(Party):  # Mirrors Customer but for Accounts Payable
    vendor_code = models.CharField(max_length=32)
    vendor_name = models.CharField(max_length=200)

    class Meta:
        indexes = [models.Index(fields=["client", "vendor_name"])]
        constraints = [
            models.UniqueConstraint(
                fields=["client", "vendor_code"],
                name="uq_client_vendor_code"),
        ]
        ordering = ("client", "vendor_name")

    def __str__(self):
        return self.vendor_name
