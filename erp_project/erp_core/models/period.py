from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .tenancy import Client

FISCAL_YEAR_STATUS = [
    ("active", "Active"),
    ("closed", "Closed"),
]

PERIOD_TYPES = [
    ("monthly", "Monthly"),
    ("quarterly", "Quarterly"),
    ("yearly", "Yearly"),
]

PERIOD_STATUS = [
    ("active", "Active"),  # the one period that accepts postings
    ("closed", "Closed"),  # can be re-activated
    ("locked", "Locked"),  # final, never re-opened
]


# ---------- Fiscal year ----------
class FiscalYear(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    name = models.CharField(max_length=50)  # Example: "2025" or "FY2025-26"
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=FISCAL_YEAR_STATUS, default="active")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "name"], name="uq_client_fiscal_year_name"),
        ]
        ordering = ("client", "-start_date")

    def __str__(self):
        return f"{self.client.slug} FY {self.name}"

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Accounting period ----------
class AccountingPeriod(models.Model):
    """
    A date range within which ledger entries are grouped.
    At most one period per client is "active" at a time;
    services.periods is the only code that activates one.
    """

    client = models.ForeignKey(Client, on_delete=models.CASCADE)

    # Optional grouping under a fiscal year
    fiscal_year = models.ForeignKey(
        FiscalYear,
        null=True,
        blank=True,
        on_delete=models.CASCADE,  # deleting a year deletes its periods
        related_name="periods",
    )
    name = models.CharField(max_length=50)  # Example: "January 2025"
    period_type = models.CharField(
        max_length=10, choices=PERIOD_TYPES, default="monthly")
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=PERIOD_STATUS, default="closed")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "start_date"]),
            models.Index(fields=["client", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["client", "name"], name="uq_client_period_name"),
            # the database backs up the "one active period" rule
            models.UniqueConstraint(
                fields=["client"],
                condition=models.Q(status="active"),
                name="uq_client_single_active_period",
            ),
        ]
        # newest period first, like the period picker
        ordering = ("client", "-start_date")

    def __str__(self):
        return f"{self.client.slug} {self.name}"

    @property
    def is_editable(self):
        # only the active period accepts new postings
        return self.status == "active"

    def contains(self, day):
        return self.start_date <= day <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

        fy = self.fiscal_year
        if fy is not None and self.start_date and self.end_date:
            # fiscal year must belong to the same tenant
            if fy.client_id != self.client_id:
                raise ValidationError(
                    "Fiscal year and period must belong to the same client")
            if self.start_date < fy.start_date or self.end_date > fy.end_date:
                raise ValidationError(
                    f"Period must fall inside fiscal year {fy.name}")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
