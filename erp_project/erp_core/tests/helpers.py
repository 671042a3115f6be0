import datetime
from decimal import Decimal
from erp_core.models import Client, LedgerEntry, Membership, User
from erp_core.services.periods import create_period
from erp_core.services.posting import ensure_system_accounts


def make_client(name="Test Co", **fields):
    return Client.objects.create(company_name=name, **fields)


def make_period(client, name="September 2025", start=datetime.date(2025, 9, 1),
                end=datetime.date(2025, 9, 30), activate=True, **kwargs):
    return create_period(client, name, start, end, activate=activate, **kwargs)


def make_user(client, username="alice", role="owner", password="pw-12345"):
    user = User.objects.create_user(username, f"{username}@example.com", password)
    Membership.objects.create(user=user, client=client, role=role)
    user.default_client = client
    user.save()
    return user


def make_ledger_client(name="Test Co"):
    """Client with an active September 2025 period and the system accounts."""
    client = make_client(name)
    period = make_period(client)
    accounts = ensure_system_accounts(client)
    return client, period, accounts


def balance_of(account):
    """Posted debits minus credits for one account."""
    rows = LedgerEntry.objects.filter(account=account, journal__status="posted")
    return sum((r.debit_amount - r.credit_amount for r in rows), Decimal("0.00"))
