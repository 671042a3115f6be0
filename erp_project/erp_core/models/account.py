from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .tenancy import Client

# Used in Account model to classify general ledger accounts
ACCOUNT_TYPES = [
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("expense", "Expense"),
]

# Balance sheet vs income statement grouping
BALANCE_SHEET_TYPES = ("asset", "liability", "equity")
INCOME_STATEMENT_TYPES = ("revenue", "expense")

# Accounts that normally increase on the debit side
DEBIT_NORMAL_TYPES = ("asset", "expense")


class Account(models.Model):
    """
    Ledger account in the client's chart of accounts.
    - code is unique per client
    - account_type decides the report it lands on and the sign of its balance
    """

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    code = models.CharField(max_length=32)   # "1000", "4010"
    name = models.CharField(max_length=200)  # "Cash in Hand"
    account_type = models.CharField(max_length=10, choices=ACCOUNT_TYPES)

    # Optional hierarchy (1000 Cash, 1001 Petty Cash, 1002 Bank)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # you can't delete a parent if children exist
        related_name="children",
    )
    # "soft deactivate": hide in pickers and stop new postings
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "account_type"]),
            models.Index(fields=["client", "code"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["client", "code"], name="uq_client_account_code")
        ]
        ordering = ("client", "code")

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def normal_balance(self):
        return "debit" if self.account_type in DEBIT_NORMAL_TYPES else "credit"

    def balance_from(self, debits, credits):
        """Signed balance: positive when the account sits on its normal side."""
        debits = debits or Decimal("0.00")
        credits = credits or Decimal("0.00")
        if self.normal_balance == "debit":
            return debits - credits
        return credits - debits

    def clean(self):
        parent = self.parent
        if parent is not None:
            if parent.client_id != self.client_id:
                raise ValidationError(
                    "Parent & child accounts must belong to the same client")
            if self.pk and parent.pk == self.pk:
                raise ValidationError("An account cannot be its own parent")

    def save(self, *args, **kwargs):
        """Can't deactivate accounts used in ledger entries"""
        if self.pk and not self.is_active:
            old = Account.objects.filter(pk=self.pk).only("is_active").first()
            if old and old.is_active:
                from .journal import LedgerEntry

                if LedgerEntry.objects.filter(account=self).exists():
                    raise ValidationError(
                        "Cannot disable an account that is used in ledger entries."
                    )
        self.full_clean()
        return super().save(*args, **kwargs)
