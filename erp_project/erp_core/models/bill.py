from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .party import Vendor
from .period import AccountingPeriod
from .tenancy import Client

BILL_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("approved", "Approved"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]

BILL_OPEN_STATUSES = ("draft", "approved", "overdue")


# ---------- Bills ----------
# Vendor bill (Accounts Payable document)
class Bill(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    period = models.ForeignKey(
        AccountingPeriod, on_delete=models.PROTECT, related_name="bills")
    vendor = models.ForeignKey(
        Vendor,
        # prevent deleting vendor who has a bill
        on_delete=models.PROTECT,
        related_name="bills",
    )
    # Vendor's bill/invoice number (e.g. "INV-4567")
    bill_number = models.CharField(max_length=64)
    bill_date = models.DateField()
    due_date = models.DateField()

    subtotal = models.DecimalField(max_digits=18, decimal_places=2)
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Track workflow
    status = models.CharField(
        max_length=10, choices=BILL_STATUS_CHOICES, default="draft")
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "bill_number"]),
            models.Index(fields=["client", "vendor"]),
            models.Index(fields=["client", "status", "due_date"]),
        ]
        constraints = [
            # Within one client, each bill number must be unique
            models.UniqueConstraint(
                fields=["client", "bill_number"],
                name="uq_bill_client_number"),
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0) & models.Q(tax_amount__gte=0)
                & models.Q(paid_amount__gte=0),
                name="bill_non_negative_amounts",
            ),
        ]
        ordering = ("client", "-bill_date", "-id")

    def __str__(self):
        return f"Bill: {self.bill_number}"

    @property
    def outstanding_amount(self):
        if self.status == "cancelled":
            return Decimal("0.00")
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))

    def is_overdue(self, today):
        return self.due_date < today and self.status in BILL_OPEN_STATUSES

    def clean(self):
        if self.vendor_id and self.vendor.client_id != self.client_id:
            raise ValidationError("Vendor must belong to the same client.")
        if self.period_id and self.period.client_id != self.client_id:
            raise ValidationError("Period must belong to the same client.")

        if self.bill_date and self.due_date and self.due_date < self.bill_date:
            raise ValidationError("Due date cannot be before bill date")

        if self.paid_amount is not None and self.total_amount is not None:
            if self.paid_amount > self.total_amount:
                raise ValidationError("Paid amount cannot exceed bill total")

        # Paid bills are immutable
        if self.pk:
            orig = Bill.objects.filter(pk=self.pk).first()
            if orig and orig.status == "paid":
                changed = [
                    f for f in ("bill_number", "subtotal", "tax_amount", "vendor_id")
                    if getattr(orig, f) != getattr(self, f)
                ]
                if changed:
                    raise ValidationError(
                        f"Cannot modify {changed} on a paid bill.")
            elif orig and orig.status != "draft":
                # approval already posted these values
                changed = [
                    f for f in ("subtotal", "tax_amount", "vendor_id", "period_id")
                    if getattr(orig, f) != getattr(self, f)
                ]
                if changed:
                    raise ValidationError(
                        "Only draft bills can change amounts, vendor or period")

    def save(self, *args, **kwargs):
        self.total_amount = (self.subtotal or Decimal("0")) + (
            self.tax_amount or Decimal("0"))
        self.full_clean()
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        allowed = {
            "draft": ["approved", "cancelled"],
            "approved": ["paid", "overdue", "cancelled"],
            "overdue": ["paid", "cancelled"],
            "paid": [],
            "cancelled": [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save()
