import logging
from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def expire_subscriptions_task():
    # import lazily to avoid circular imports at module import time
    from .services.subscriptions import expire_subscriptions

    expired = expire_subscriptions(timezone.localdate())
    return [c.client_code for c in expired]


@shared_task
def mark_overdue_documents_task():
    from .models import Client
    from .services.invoicing import mark_overdue

    today = timezone.localdate()
    totals = {"invoices": 0, "bills": 0}
    for client in Client.objects.filter(subscription_status="ACTIVE"):
        counts = mark_overdue(client, today)
        totals["invoices"] += counts["invoices"]
        totals["bills"] += counts["bills"]
    return totals


@shared_task
def rebuild_attendance_summaries_task(client_id=None, year=None, month=None):
    """Rebuild the current month (or the one given) for one or all clients."""
    from .models import Client
    from .services.attendance import summarize_month

    today = timezone.localdate()
    year, month = year or today.year, month or today.month
    clients = Client.objects.filter(subscription_status="ACTIVE")
    if client_id is not None:
        clients = Client.objects.filter(pk=client_id)

    rebuilt = 0
    for client in clients:
        rebuilt += len(summarize_month(client, year, month))
    logger.info("Rebuilt %d attendance summaries for %d-%02d", rebuilt, year, month)
    return rebuilt


@shared_task
def snapshot_profit_loss_task(client_id=None, year=None, month=None):
    from .models import Client
    from .services.reports import monthly_profit_loss

    today = timezone.localdate()
    year, month = year or today.year, month or today.month
    clients = Client.objects.filter(subscription_status="ACTIVE")
    if client_id is not None:
        clients = Client.objects.filter(pk=client_id)

    # Fetch each client's month, every one gets a fresh snapshot row
    snapshots = [monthly_profit_loss(client, year, month) for client in clients]
    return [str(s.net_profit_loss) for s in snapshots]
