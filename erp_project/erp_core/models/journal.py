from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import ClosedPeriodError, UnbalancedJournalError
from ..managers import TenantManager
from .account import Account
from .period import AccountingPeriod
from .tenancy import Client

JOURNAL_STATUS = [
    ("draft", "Draft"),    # still editable
    ("posted", "Posted"),  # finalized
]

# Where a journal came from
REFERENCE_TYPES = [
    ("manual", "Manual"),
    ("sales", "Sales entry"),
    ("expense", "Expense entry"),
    ("purchase", "Purchase entry"),
    ("cash_book", "Cash book entry"),
    ("invoice", "Invoice"),
    ("invoice_payment", "Invoice payment"),
    ("bill", "Bill"),
    ("bill_payment", "Bill payment"),
    ("reversal", "Reversal"),
]


# ---------- Journal (Header) & LedgerEntry ----------
class JournalEntry(models.Model):  # One balanced accounting transaction
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    period = models.ForeignKey(
        AccountingPeriod,
        on_delete=models.PROTECT,  # Prevent breaking historical ledger
        related_name="journals",
    )
    entry_date = models.DateField()
    description = models.CharField(max_length=400, blank=True)

    # Polymorphic source info (sales entry, invoice, cash book, ...)
    reference_type = models.CharField(
        max_length=20, choices=REFERENCE_TYPES, default="manual")
    reference_id = models.BigIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=10, choices=JOURNAL_STATUS, default="draft")
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Set on the mirror entry created by reverse_journal()
    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversed_by",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "entry_date"]),
            models.Index(fields=["client", "status"]),
            models.Index(fields=["client", "reference_type", "reference_id"]),
        ]
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"JE {self.pk} {self.entry_date} [{self.status}]"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit_amount"),
            total_credit=models.Sum("credit_amount"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    # True if double-entry rule holds: total debits = total credits
    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    @transaction.atomic
    def post(self, user=None):
        """
        Validate and finalize the entry.
        Calling it again on a posted entry is a no-op.
        """
        # Lock the header so two requests can't post it twice
        je = JournalEntry.objects.select_for_update().get(pk=self.pk)
        if je.status == "posted":
            return je

        if not je.lines.exists():
            raise ValidationError("Journal entry must have at least one line.")

        debit, credit = je.compute_totals()
        if debit != credit:
            raise UnbalancedJournalError(
                f"Journal not balanced: debits={debit}, credits={credit}"
            )
        if debit == 0:
            raise UnbalancedJournalError("Journal total cannot be zero")

        if not je.period.is_editable:
            raise ClosedPeriodError(
                f"Period {je.period.name} is {je.period.status}")

        je.status = "posted"
        je.posted_at = timezone.now()
        je.posted_by = user
        je.save(update_fields=["status", "posted_at", "posted_by"])

        # keep the caller's instance in sync
        self.status, self.posted_at, self.posted_by = (
            je.status, je.posted_at, je.posted_by)
        return je

    def clean(self):
        if self.period_id and self.period.client_id != self.client_id:
            raise ValidationError(
                "Period must belong to the same client as journal")
        if self.period_id and self.entry_date and not self.period.contains(self.entry_date):
            raise ValidationError(
                f"Date {self.entry_date} is outside period {self.period.name}")

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).only("status").first()
            # disallow un-posting
            if orig and orig.status == "posted" and self.status != "posted":
                raise ValidationError("Cannot unpost a posted journal")
        self.full_clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        # Posted journals are corrected by reversal, never deleted
        if self.status == "posted":
            raise ValidationError(
                "Cannot delete a posted journal entry; reverse it instead.")
        return super().delete(*args, **kwargs)


class LedgerEntry(models.Model):  # general ledger row (one side of a journal)
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    account = models.ForeignKey(Account, on_delete=models.PROTECT)
    period = models.ForeignKey(AccountingPeriod, on_delete=models.PROTECT)
    transaction_date = models.DateField()
    description = models.CharField(max_length=400, blank=True)
    debit_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "account"]),
            models.Index(fields=["client", "period"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit_amount__gte=0) & models.Q(credit_amount__gte=0),
                name="le_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit_amount=0) & models.Q(credit_amount=0)),
                name="le_debit_or_credit_nonzero",
            ),
        ]
        ordering = ("-transaction_date", "-id")
        verbose_name_plural = "ledger entries"

    def __str__(self):
        return (f"{self.journal_id} | {self.account} | "
                f"D:{self.debit_amount} C:{self.credit_amount}")

    def clean(self):
        debit = self.debit_amount or Decimal("0")
        credit = self.credit_amount or Decimal("0")
        if debit < 0 or credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if debit > 0 and credit > 0:
            raise ValidationError(
                "Ledger entry should not have both debit and credit > 0")
        if debit == 0 and credit == 0:
            raise ValidationError(
                "Ledger entry requires a non-0 amount on either debit or credit")

        # Prevent cross-client contamination
        if self.account_id and self.account.client_id != self.client_id:
            raise ValidationError("Ledger account must belong to the same client.")
        if self.journal_id and self.journal.client_id != self.client_id:
            raise ValidationError("Ledger entry must belong to the journal's client.")

        # Nothing can be added to, or changed on, a posted journal
        if self.journal_id and self.journal.status == "posted":
            raise ValidationError("Cannot modify lines of a posted journal.")

    def save(self, *args, **kwargs):
        # copy header fields down so reports filter a single table
        if self.journal_id:
            self.client_id = self.client_id or self.journal.client_id
            self.period_id = self.journal.period_id
            self.transaction_date = self.transaction_date or self.journal.entry_date
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.journal.status == "posted":
            raise ValidationError(
                "Cannot delete a ledger entry of a posted journal.")
        return super().delete(*args, **kwargs)
