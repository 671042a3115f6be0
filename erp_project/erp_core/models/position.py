from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from ..managers import TenantManager
from .tenancy import Client

ITEM_KINDS = [
    ("asset", "Asset"),
    ("liability", "Liability"),
]

TAX_STATUS = [
    ("pending", "Pending"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
]


# ---------- Assets & liabilities register ----------
class AssetLiabilityItem(models.Model):
    """Stored per client in the database, never in the browser."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    kind = models.CharField(max_length=10, choices=ITEM_KINDS)
    # e.g. "cash", "inventory", "short_loans", "taxes_payable"
    category = models.CharField(max_length=50)
    description = models.CharField(max_length=200, blank=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    as_of = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["client", "kind"])]
        ordering = ("client", "kind", "category")

    def __str__(self):
        return f"{self.kind}:{self.category} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount < 0:
            raise ValidationError("Amount cannot be negative")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @classmethod
    def net_worth(cls, client):
        """Return (total assets, total liabilities, net worth)."""
        totals = dict(
            cls.objects.for_client(client)
            .order_by()
            .values_list("kind")
            .annotate(total=Sum("amount"))
        )
        assets = totals.get("asset") or Decimal("0.00")
        liabilities = totals.get("liability") or Decimal("0.00")
        return assets, liabilities, assets - liabilities


# ---------- Tax records ----------
class TaxRecord(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    tax_type = models.CharField(max_length=50)        # "VAT", "Income tax"
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    period_label = models.CharField(max_length=50, blank=True)  # "Q1 2025"
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=TAX_STATUS, default="pending")
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["client", "status"])]
        ordering = ("client", "-created_at")

    def __str__(self):
        return f"{self.tax_type} {self.period_label} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Tax amount must be greater than zero")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @classmethod
    def totals(cls, client):
        """Sum of paid and of outstanding (pending/overdue) tax."""
        qs = cls.objects.for_client(client)
        paid = qs.filter(status="paid").aggregate(s=Sum("amount"))["s"]
        pending = qs.exclude(status="paid").aggregate(s=Sum("amount"))["s"]
        return {
            "paid": paid or Decimal("0.00"),
            "pending": pending or Decimal("0.00"),
        }
