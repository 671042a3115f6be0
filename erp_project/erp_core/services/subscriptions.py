import calendar
import datetime
import logging
import secrets
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify
from .audit_helper import log_action

logger = logging.getLogger(__name__)


# ----------------------------
# Client identifiers
# ----------------------------
def generate_client_code() -> str:
    """Return an unused public code such as "CLI-004217"."""
    from ..models import Client

    while True:
        code = f"CLI-{secrets.randbelow(1_000_000):06d}"
        if not Client.objects.filter(client_code=code).exists():
            return code


def unique_client_slug(company_name: str) -> str:
    from ..models import Client

    base = slugify(company_name)[:70] or "client"
    slug, n = base, 2
    # "acme", "acme-2", "acme-3", ...
    while Client.objects.filter(slug=slug).exists():
        slug = f"{base}-{n}"
        n += 1
    return slug


# ----------------------------
# Subscription dates
# ----------------------------
def add_months(day: datetime.date, months: int) -> datetime.date:
    """Same day `months` later, clamped to the end of a shorter month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def calculate_subscription_end_date(start_date, months=1):
    if months < 1:
        raise ValueError("A subscription lasts at least one month")
    return add_months(start_date, months)


def calculate_next_billing_date(start_date, billing_day):
    """
    First date strictly after start_date that falls on billing_day.
    billing_day is limited to 1-28 so every month has it.
    """
    if not 1 <= billing_day <= 28:
        raise ValueError("billing_day must be between 1 and 28")
    if start_date.day < billing_day:
        return start_date.replace(day=billing_day)
    return add_months(start_date.replace(day=billing_day), 1)


# ----------------------------
# Subscription workflows
# ----------------------------
@transaction.atomic
def extend_subscription(client, months=1, user=None):
    """Push subscription_end forward and switch the client back on."""
    from ..models import Client

    client = Client.objects.select_for_update().get(pk=client.pk)
    old_end = client.subscription_end
    # an expired subscription restarts from today
    base = max(old_end, timezone.localdate())
    client.subscription_end = calculate_subscription_end_date(base, months)
    client.subscription_status = "ACTIVE"
    client.access_status = True
    client.save()

    log_action(
        action="extend_subscription",
        instance=client,
        client=client,
        user=user,
        changes={"subscription_end": [str(old_end), str(client.subscription_end)]},
    )
    logger.info("Subscription of %s extended to %s",
                client.client_code, client.subscription_end)
    return client


@transaction.atomic
def set_client_access(client, enabled: bool, user=None):
    """Administrator switch: access on means ACTIVE, off means INACTIVE."""
    from ..models import Client

    client = Client.objects.select_for_update().get(pk=client.pk)
    client.access_status = enabled
    client.subscription_status = "ACTIVE" if enabled else "INACTIVE"
    client.save(update_fields=["access_status", "subscription_status", "updated_at"])

    log_action(
        action="grant_access" if enabled else "revoke_access",
        instance=client,
        client=client,
        user=user,
    )
    logger.info("Access for %s set to %s", client.client_code, enabled)
    return client


def expire_subscriptions(today):
    """ACTIVE clients whose subscription_end is before today become EXPIRED."""
    from ..models import Client

    expired = []
    with transaction.atomic():
        qs = Client.objects.select_for_update().filter(
            subscription_status="ACTIVE", subscription_end__lt=today)
        for client in qs:
            client.subscription_status = "EXPIRED"
            client.access_status = False
            client.save(update_fields=[
                "subscription_status", "access_status", "updated_at"])
            log_action(action="expire_subscription", instance=client, client=client)
            expired.append(client)

    if expired:
        logger.info("Expired %d subscription(s)", len(expired))
    return expired


def client_can_sign_in(client, today) -> bool:
    if client is None or not client.access_status:
        return False
    if client.subscription_status != "ACTIVE":
        return False
    return client.subscription_end >= today
