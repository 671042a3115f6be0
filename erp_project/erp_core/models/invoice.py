from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .party import Customer
from .period import AccountingPeriod
from .tenancy import Client

INV_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("sent", "Sent"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]

# Statuses that still count towards receivables
INV_OPEN_STATUSES = ("draft", "sent", "overdue")


class Invoice(models.Model):  # Represents a customer invoice (AR side)

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    period = models.ForeignKey(
        AccountingPeriod, on_delete=models.PROTECT, related_name="invoices")
    customer = models.ForeignKey(
        Customer,
        # prevent deleting customer who has an invoice
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_number = models.CharField(max_length=64)  # "INV-2025-001"
    invoice_date = models.DateField()
    due_date = models.DateField()

    # total_amount = subtotal + tax_amount, kept in sync by save()
    subtotal = models.DecimalField(max_digits=18, decimal_places=2)
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="draft")
    """ Workflow:
        draft = not yet finalized.
        sent = issued and posted to the ledger.
        overdue = sent and past due_date.
        paid = fully settled.
        cancelled = voided. """
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "invoice_number"]),
            models.Index(fields=["client", "customer"]),
            models.Index(fields=["client", "status", "due_date"]),
        ]
        constraints = [
            # Within one client, each invoice number must be unique
            models.UniqueConstraint(
                fields=["client", "invoice_number"],
                name="uq_invoice_client_number"),
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0) & models.Q(tax_amount__gte=0)
                & models.Q(paid_amount__gte=0),
                name="inv_non_negative_amounts",
            ),
        ]
        ordering = ("client", "-invoice_date", "-id")

    def __str__(self):
        return f"Inv {self.invoice_number}"

    @property
    def outstanding_amount(self):
        if self.status == "cancelled":
            return Decimal("0.00")
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))

    def is_overdue(self, today):
        return self.due_date < today and self.status in INV_OPEN_STATUSES

    def clean(self):
        # Prevent cross-client contamination
        if self.customer_id and self.customer.client_id != self.client_id:
            raise ValidationError("Customer must belong to the same client.")
        if self.period_id and self.period.client_id != self.client_id:
            raise ValidationError("Period must belong to the same client.")

        if self.invoice_date and self.due_date and self.due_date < self.invoice_date:
            raise ValidationError("Due date cannot be before invoice date")

        if self.paid_amount is not None and self.total_amount is not None:
            if self.paid_amount > self.total_amount:
                raise ValidationError("Paid amount cannot exceed invoice total")

        # Paid invoices are immutable
        if self.pk:
            orig = Invoice.objects.filter(pk=self.pk).first()
            if orig and orig.status == "paid":
                changed = [
                    f for f in ("invoice_number", "subtotal", "tax_amount", "customer_id")
                    if getattr(orig, f) != getattr(self, f)
                ]
                if changed:
                    raise ValidationError(
                        f"Cannot modify {changed} on a paid invoice.")
            elif orig and orig.status != "draft":
                # the ledger was written from these values when it was sent
                changed = [
                    f for f in ("subtotal", "tax_amount", "customer_id", "period_id")
                    if getattr(orig, f) != getattr(self, f)
                ]
                if changed:
                    raise ValidationError(
                        "Only draft invoices can change amounts, customer or period")

    def save(self, *args, **kwargs):
        self.total_amount = (self.subtotal or Decimal("0")) + (
            self.tax_amount or Decimal("0"))
        self.full_clean()
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        # Current state vs. allowed next states
        allowed = {
            "draft": ["sent", "cancelled"],
            "sent": ["paid", "overdue", "cancelled"],
            "overdue": ["paid", "cancelled"],
            "paid": [],
            "cancelled": [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save()
