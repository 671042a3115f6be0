import calendar
import datetime
import logging
from django.core.exceptions import ValidationError
from django.db import transaction
from ..exceptions import NoActivePeriodError
from ..models import AccountingPeriod, FiscalYear, JournalEntry
from .audit_helper import log_action

logger = logging.getLogger(__name__)


# ----------------------------
# Lookups
# ----------------------------
def get_active_period(client):
    """The tenant's single active period, or None."""
    return AccountingPeriod.objects.for_client(client).filter(status="active").first()


def require_active_period(client):
    period = get_active_period(client)
    if period is None:
        raise NoActivePeriodError(
            "No active accounting period. Please activate a period first.")
    return period


def get_active_fiscal_year(client):
    return FiscalYear.objects.for_client(client).filter(status="active").first()


def is_period_editable(period) -> bool:
    return period is not None and period.is_editable


""" 
    Posting date determines the period.
    Changing the date before posting should affect the period.
    Prefers the active period when periods overlap.
"""
def resolve_period(client, date):
    period = (
        AccountingPeriod.objects.for_client(client)
        .filter(start_date__lte=date, end_date__gte=date)
        .order_by("status", "-start_date")  # "active" sorts first
        .first()
    )
    if period is None:
        raise ValidationError(f"No accounting period covers {date} for {client}")
    return period


# ----------------------------
# Activation (one active period per client)
# ----------------------------
def _close_other_active_periods(client, keep=None):
    # Lock every active row of the tenant so two concurrent activations
    # serialise here instead of racing on the unique constraint
    others = AccountingPeriod.objects.select_for_update().filter(
        client=client, status="active")
    if keep is not None:
        others = others.exclude(pk=keep.pk)
    closed = list(others)
    for period in closed:
        period.status = "closed"
        period.save(update_fields=["status", "updated_at"])
    return closed


@transaction.atomic
def activate_period(period, user=None):
    """Make `period` the active one; every other active period is closed."""
    period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
    if period.status == "locked":
        raise ValidationError(f"Period {period.name} is locked and cannot be reopened")
    if period.status == "active":
        return period

    closed = _close_other_active_periods(period.client, keep=period)
    period.status = "active"
    period.save(update_fields=["status", "updated_at"])

    log_action(
        action="activate",
        instance=period,
        user=user,
        changes={"closed": [p.name for p in closed]},
    )
    logger.info("Activated period %s for %s", period.name, period.client.client_code)
    return period


@transaction.atomic
def create_period(client, name, start_date, end_date, *, period_type="monthly",
                  fiscal_year=None, activate=True, user=None):
    """Create a period; by default it becomes the active one."""
    if activate:
        _close_other_active_periods(client)
    period = AccountingPeriod.objects.create(
        client=client,
        fiscal_year=fiscal_year,
        name=name,
        period_type=period_type,
        start_date=start_date,
        end_date=end_date,
        status="active" if activate else "closed",
    )
    log_action(action="create", instance=period, user=user,
               changes={"status": period.status})
    logger.info("Created period %s (%s) for %s",
                period.name, period.status, client.client_code)
    return period


@transaction.atomic
def close_period(period, user=None):
    period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
    if period.status == "locked":
        raise ValidationError(f"Period {period.name} is locked")
    if period.status != "closed":
        period.status = "closed"
        period.save(update_fields=["status", "updated_at"])
        log_action(action="close", instance=period, user=user)
    return period


@transaction.atomic
def lock_period(period, user=None):
    """Locked periods are final and never reopen."""
    period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
    if period.status != "locked":
        period.status = "locked"
        period.save(update_fields=["status", "updated_at"])
        log_action(action="lock", instance=period, user=user)
        logger.info("Locked period %s for %s", period.name, period.client.client_code)
    return period


def toggle_period_status(period, user=None):
    """The period list's switch: active becomes closed and closed becomes active."""
    if period.status == "active":
        return close_period(period, user=user)
    return activate_period(period, user=user)


@transaction.atomic
def delete_period(period, user=None):
    if JournalEntry.objects.filter(period=period, status="posted").exists():
        raise ValidationError("Cannot delete a period with posted journal entries.")
    log_action(action="delete", instance=period, user=user,
               changes={"name": period.name})
    period.delete()


# ----------------------------
# Period generation
# ----------------------------
def month_bounds(year, month):
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, 1), datetime.date(year, month, last_day)


def create_default_period(client, today, user=None):
    """Current calendar month as the active period ("October 2026")."""
    start, end = month_bounds(today.year, today.month)
    name = start.strftime("%B %Y")
    existing = AccountingPeriod.objects.for_client(client).filter(name=name).first()
    if existing:
        return activate_period(existing, user=user)
    return create_period(client, name, start, end, activate=True, user=user)


@transaction.atomic
def create_fiscal_year(client, name, start_date, end_date, *,
                       monthly_periods=False, user=None):
    """
    Create a fiscal year, optionally split into month periods.
    Generated periods start closed; activate one explicitly.
    """
    fy = FiscalYear.objects.create(
        client=client, name=name, start_date=start_date, end_date=end_date)
    log_action(action="create", instance=fy, user=user)

    if monthly_periods:
        cursor = start_date
        while cursor <= end_date:
            _, month_end = month_bounds(cursor.year, cursor.month)
            period_end = min(month_end, end_date)
            if cursor == period_end:
                # a period needs at least two days
                raise ValidationError(
                    f"Fiscal year {name} would leave a one-day period on {cursor}")
            AccountingPeriod.objects.create(
                client=client,
                fiscal_year=fy,
                name=cursor.strftime("%B %Y"),
                period_type="monthly",
                start_date=cursor,
                end_date=period_end,
                status="closed",
            )
            cursor = period_end + datetime.timedelta(days=1)
    return fy
