import logging
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
# Import models
from ..exceptions import ClosedPeriodError, UnbalancedJournalError
from ..models import (Account, AccountingPeriod, CashBookEntry, ExpenseEntry,
                      JournalEntry, LedgerEntry, PurchaseEntry, SalesEntry)
from .audit_helper import log_action
from .periods import require_active_period, resolve_period

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# key -> (code, name, account_type); created per client on demand
SYSTEM_ACCOUNTS = {
    "cash": ("1000", "Cash in Hand", "asset"),
    "bank": ("1010", "Bank", "asset"),
    "receivables": ("1100", "Accounts Receivable", "asset"),
    "payables": ("2000", "Accounts Payable", "liability"),
    "tax_payable": ("2100", "Tax Payable", "liability"),
    "equity": ("3000", "Owner's Equity", "equity"),
    "sales": ("4000", "Sales Revenue", "revenue"),
    "purchases": ("5000", "Purchases", "expense"),
    "expenses": ("5100", "General Expenses", "expense"),
}


def ensure_system_accounts(client):
    """Create any missing system account; return {key: Account}."""
    accounts = {}
    for key, (code, name, account_type) in SYSTEM_ACCOUNTS.items():
        account = Account.objects.filter(client=client, code=code).first()
        if account is None:
            account = Account.objects.create(
                client=client, code=code, name=name, account_type=account_type)
        accounts[key] = account
    return accounts


def system_account(client, key):
    code = SYSTEM_ACCOUNTS[key][0]
    account = Account.objects.filter(client=client, code=code).first()
    if account is None:
        account = ensure_system_accounts(client)[key]
    return account


def _to_amount(value):
    return Decimal(str(value or "0")).quantize(CENT)


# ----------------------------
# Journal-related workflows
# ----------------------------
def post_journal(client, entry_date, lines, *, description="", period=None,
                 reference_type="manual", reference_id=None, user=None):
    """
    Write a balanced journal and post it, all or nothing.

    `lines` is an iterable of dicts:
        {"account": Account, "debit": amount, "credit": amount, "description": str}
    Exactly one of debit/credit must be non-zero on each line.
    """
    prepared = []
    total_debit = total_credit = Decimal("0.00")
    for line in lines:
        account = line["account"]
        debit = _to_amount(line.get("debit"))
        credit = _to_amount(line.get("credit"))
        if debit < 0 or credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if (debit > 0) == (credit > 0):
            raise ValidationError(
                f"Line for {account} needs exactly one of debit or credit")
        if account.client_id != client.pk:
            raise ValidationError(f"Account {account} belongs to another client")
        if not account.is_active:
            raise ValidationError(f"Account {account} is inactive")
        total_debit += debit
        total_credit += credit
        prepared.append((account, debit, credit, line.get("description") or description))

    if total_debit != total_credit:
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={total_debit}, credits={total_credit}")
    if total_debit == 0:
        raise UnbalancedJournalError("Journal needs at least one debit and one credit")

    with transaction.atomic():
        if period is None:
            period = resolve_period(client, entry_date)
        elif period.client_id != client.pk:
            raise ValidationError("Period must belong to the same client")
        # lock the period so it can't be closed half way through the posting
        period = AccountingPeriod.objects.select_for_update().get(pk=period.pk)
        if not period.is_editable:
            logger.warning("Refused posting into %s period %s",
                           period.status, period.name)
            raise ClosedPeriodError(
                f"Period {period.name} is {period.status}; only the active period accepts postings")

        je = JournalEntry.objects.create(
            client=client,
            period=period,
            entry_date=entry_date,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
            status="draft",
        )
        for account, debit, credit, text in prepared:
            LedgerEntry.objects.create(
                client=client,
                journal=je,
                account=account,
                description=text,
                debit_amount=debit,
                credit_amount=credit,
            )
        je.post(user=user)
        log_action(action="post", instance=je, user=user,
                   changes={"total": str(total_debit), "reference": reference_type})

    logger.info("Posted journal %s (%s) for %s: %s",
                je.pk, reference_type, client.client_code, total_debit)
    return je


def reverse_journal(entry, user=None, entry_date=None):
    """Post the mirror image of a posted journal."""
    if entry.status != "posted":
        raise ValidationError("Only posted journals can be reversed")
    if JournalEntry.objects.filter(reverses=entry).exists():
        raise ValidationError(f"Journal {entry.pk} is already reversed")

    # stay in the original period while it is open, else use the active one
    # the cached period may have been closed since the entry was loaded
    current = AccountingPeriod.objects.get(pk=entry.period_id)
    if current.is_editable:
        period = current
        day = entry_date or entry.entry_date
    else:
        period = require_active_period(entry.client)
        day = entry_date or min(max(timezone.localdate(), period.start_date),
                                period.end_date)

    lines = [
        {
            "account": line.account,
            "debit": line.credit_amount,
            "credit": line.debit_amount,
            "description": f"Reversal: {line.description}",
        }
        for line in entry.lines.select_related("account")
    ]
    with transaction.atomic():
        reversal = post_journal(
            entry.client,
            day,
            lines,
            description=f"Reversal of journal {entry.pk}: {entry.description}",
            period=period,
            reference_type="reversal",
            reference_id=entry.pk,
            user=user,
        )
        reversal.reverses = entry
        reversal.save(update_fields=["reverses"])
    return reversal


def ledger_for_period(client, period, account=None):
    """Posted ledger rows of the period, newest first."""
    qs = (
        LedgerEntry.objects.for_client(client)
        .filter(period=period, journal__status="posted")
        .select_related("account", "journal")
    )
    if account is not None:
        qs = qs.filter(account=account)
    return qs.order_by("-transaction_date", "-id")


# ----------------------------
# Day books -> general ledger
# ----------------------------
def _record_daybook(model, reference_type, debit_key, credit_key, client, date,
                    description, amount, *, period=None, user=None, **fields):
    amount = _to_amount(amount)
    with transaction.atomic():
        if period is None:
            period = resolve_period(client, date)
        entry = model.objects.create(
            client=client, period=period, date=date,
            description=description, amount=amount, **fields)
        je = post_journal(
            client,
            date,
            [
                {"account": system_account(client, debit_key), "debit": amount},
                {"account": system_account(client, credit_key), "credit": amount},
            ],
            description=description,
            period=period,
            reference_type=reference_type,
            reference_id=entry.pk,
            user=user,
        )
        entry.journal = je
        entry.save(update_fields=["journal"])
    return entry


def record_sales_entry(client, date, description, amount, category="", **kwargs):
    return _record_daybook(SalesEntry, "sales", "cash", "sales", client, date,
                           description, amount, category=category, **kwargs)


def record_expense_entry(client, date, description, amount, category="", **kwargs):
    return _record_daybook(ExpenseEntry, "expense", "expenses", "cash", client, date,
                           description, amount, category=category, **kwargs)


def record_purchase_entry(client, date, description, amount, category="",
                          payment_status="paid", **kwargs):
    # unpaid purchases are owed to the supplier
    credit_key = "cash" if payment_status == "paid" else "payables"
    return _record_daybook(PurchaseEntry, "purchase", "purchases", credit_key, client,
                           date, description, amount, category=category,
                           payment_status=payment_status, **kwargs)


def record_cash_book_entry(client, entry_date, particulars, amount, *,
                           transaction_type="receipt", account_type="cash",
                           contra_account=None, voucher_number="", narration="",
                           account_name=None, period=None, user=None):
    """
    Receipt: Dr cash/bank, Cr contra (default Sales Revenue).
    Payment: Dr contra (default General Expenses), Cr cash/bank.
    """
    amount = _to_amount(amount)
    if transaction_type not in ("receipt", "payment"):
        raise ValidationError(f"Unknown transaction type {transaction_type}")
    book = system_account(client, "bank" if account_type == "bank" else "cash")
    if contra_account is None:
        contra_account = system_account(
            client, "sales" if transaction_type == "receipt" else "expenses")

    with transaction.atomic():
        if period is None:
            period = resolve_period(client, entry_date)
        entry = CashBookEntry.objects.create(
            client=client,
            period=period,
            entry_date=entry_date,
            particulars=particulars,
            voucher_number=voucher_number,
            transaction_type=transaction_type,
            account_type=account_type,
            account_name=account_name or book.name,
            amount=amount,
            contra_account=contra_account,
            narration=narration,
        )
        if transaction_type == "receipt":
            debit, credit = book, contra_account
        else:
            debit, credit = contra_account, book
        je = post_journal(
            client,
            entry_date,
            [
                {"account": debit, "debit": amount},
                {"account": credit, "credit": amount},
            ],
            description=particulars,
            period=period,
            reference_type="cash_book",
            reference_id=entry.pk,
            user=user,
        )
        entry.journal = je
        entry.save(update_fields=["journal"])
    return entry


@transaction.atomic
def delete_daybook_entry(entry, user=None):
    """Delete a day book row; its posted journal is reversed, not deleted."""
    if entry.journal_id and entry.journal.status == "posted":
        reverse_journal(entry.journal, user=user)
    log_action(action="delete", instance=entry, user=user,
               changes={"amount": str(entry.amount)})
    entry.delete()


def cash_book_summary(entries):
    """Receipts, payments and balance per cash and bank."""
    summary = {
        kind: {"receipts": Decimal("0.00"), "payments": Decimal("0.00")}
        for kind in ("cash", "bank")
    }
    for entry in entries:
        side = "receipts" if entry.transaction_type == "receipt" else "payments"
        summary[entry.account_type][side] += entry.amount
    for totals in summary.values():
        totals["balance"] = totals["receipts"] - totals["payments"]
    summary["total_balance"] = summary["cash"]["balance"] + summary["bank"]["balance"]
    return summary
