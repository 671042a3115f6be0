from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .journal import JournalEntry
from .period import AccountingPeriod
from .tenancy import Client

PAYMENT_STATUS = [
    ("paid", "Paid"),
    ("pending", "Pending"),
]

CASH_TRANSACTION_TYPES = [
    ("receipt", "Receipt"),
    ("payment", "Payment"),
]

CASH_ACCOUNT_TYPES = [
    ("cash", "Cash"),
    ("bank", "Bank"),
]


# ---------- Day book base ----------
class DayBookEntry(models.Model):
    """
    Common shape of the simple day books (sales, expenses, purchases).
    Each row is posted to the general ledger through `journal`.
    """

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    period = models.ForeignKey(AccountingPeriod, on_delete=models.PROTECT)
    date = models.DateField()
    description = models.CharField(max_length=400)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    category = models.CharField(max_length=100, blank=True)

    # Journal posted for this row (set by services.posting)
    journal = models.OneToOneField(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        abstract = True
        ordering = ("client", "-date", "-id")

    def __str__(self):
        return f"{self.date} {self.description} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount <= Decimal("0"):
            raise ValidationError("Amount must be greater than zero")
        if self.period_id and self.period.client_id != self.client_id:
            raise ValidationError("Period must belong to the same client.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class SalesEntry(DayBookEntry):
    class Meta(DayBookEntry.Meta):
        verbose_name_plural = "sales entries"
        indexes = [models.Index(fields=["client", "period"], name="sales_client_period_idx")]


class ExpenseEntry(DayBookEntry):
    class Meta(DayBookEntry.Meta):
        verbose_name_plural = "expense entries"
        indexes = [models.Index(fields=["client", "period"], name="expense_client_period_idx")]


class PurchaseEntry(DayBookEntry):
    # pending purchases are owed to the supplier (payables)
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS, default="paid")

    class Meta(DayBookEntry.Meta):
        verbose_name_plural = "purchase entries"
        indexes = [models.Index(fields=["client", "period"], name="purchase_client_period_idx")]


# ---------- Cash book ----------
class CashBookEntry(models.Model):
    """Receipt or payment through cash in hand or the bank."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    period = models.ForeignKey(AccountingPeriod, on_delete=models.PROTECT)
    entry_date = models.DateField()
    particulars = models.CharField(max_length=400)
    voucher_number = models.CharField(max_length=64, blank=True)
    transaction_type = models.CharField(
        max_length=10, choices=CASH_TRANSACTION_TYPES, default="receipt")
    account_type = models.CharField(
        max_length=10, choices=CASH_ACCOUNT_TYPES, default="cash")
    account_name = models.CharField(max_length=200, default="Cash in Hand")
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # ledger account on the other side of the movement
    contra_account = models.ForeignKey(
        "Account",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    narration = models.TextField(blank=True)
    journal = models.OneToOneField(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["client", "period"])]
        ordering = ("client", "-entry_date", "-id")
        verbose_name_plural = "cash book entries"

    def __str__(self):
        return f"{self.entry_date} {self.transaction_type} {self.amount} ({self.account_type})"

    def clean(self):
        if self.amount is not None and self.amount <= Decimal("0"):
            raise ValidationError("Please enter a valid amount")
        if self.period_id and self.period.client_id != self.client_id:
            raise ValidationError("Period must belong to the same client.")
        if self.contra_account_id and self.contra_account.client_id != self.client_id:
            raise ValidationError("Contra account must belong to the same client.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
