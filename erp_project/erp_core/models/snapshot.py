from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .tenancy import Client


# ---------- Monthly profit & loss ----------
class ProfitLossSnapshot(models.Model):
    """One row per client per month, refreshed by services.reports."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    year = models.PositiveSmallIntegerField()
    month_number = models.PositiveSmallIntegerField()
    total_sales = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_expenses = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    net_profit_loss = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "year", "month_number"],
                name="uq_client_profit_loss_month"),
        ]
        ordering = ("client", "-year", "-month_number")

    def __str__(self):
        return f"{self.client.slug} {self.year}-{self.month_number:02d}: {self.net_profit_loss}"
