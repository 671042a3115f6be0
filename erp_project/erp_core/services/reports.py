import csv
import io
import logging
from decimal import Decimal
from django.db.models import Q, Sum
from ..models import (Account, AssetLiabilityItem, ExpenseEntry,
                      ProfitLossSnapshot, PurchaseEntry, SalesEntry, TaxRecord)
from .periods import month_bounds

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

CSV_HEADER = ["Account Code", "Account Name", "Type", "Debits", "Credits", "Balance"]


def account_balances(client, period):
    """
    Every active account with its posted debits/credits in `period`.
    balance is signed by the account's normal side
    (asset/expense: debits - credits, others: credits - debits).
    """
    posted_in_period = Q(
        ledgerentry__period=period, ledgerentry__journal__status="posted")
    accounts = (
        Account.objects.active(client)
        .annotate(
            debits=Sum("ledgerentry__debit_amount", filter=posted_in_period),
            credits=Sum("ledgerentry__credit_amount", filter=posted_in_period),
        )
        .order_by("code")
    )
    rows = []
    for account in accounts:
        debits = account.debits or ZERO
        credits = account.credits or ZERO
        rows.append({
            "account": account,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "debits": debits,
            "credits": credits,
            "balance": account.balance_from(debits, credits),
        })
    return rows


def _by_type(rows, account_type):
    return [r for r in rows if r["account_type"] == account_type]


def _total(rows):
    return sum((r["balance"] for r in rows), ZERO)


def trial_balance(client, period):
    rows = []
    total_debit = total_credit = ZERO
    for row in account_balances(client, period):
        if not row["debits"] and not row["credits"]:
            continue
        net = row["debits"] - row["credits"]
        debit_balance = net if net > 0 else ZERO
        credit_balance = -net if net < 0 else ZERO
        total_debit += debit_balance
        total_credit += credit_balance
        rows.append({**row, "debit_balance": debit_balance,
                     "credit_balance": credit_balance})
    return {
        "rows": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "balanced": total_debit == total_credit,
    }


def income_statement(client, period, rows=None):
    rows = rows if rows is not None else account_balances(client, period)
    revenue = _by_type(rows, "revenue")
    expenses = _by_type(rows, "expense")
    total_revenue = _total(revenue)
    total_expenses = _total(expenses)
    return {
        "revenue": revenue,
        "expenses": expenses,
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_income": total_revenue - total_expenses,
    }


def balance_sheet(client, period):
    rows = account_balances(client, period)
    assets = _by_type(rows, "asset")
    liabilities = _by_type(rows, "liability")
    equity = _by_type(rows, "equity")

    total_assets = _total(assets)
    total_liabilities = _total(liabilities)
    # the period's result belongs to the owners until it is closed out
    net_income = income_statement(client, period, rows)["net_income"]
    total_equity = _total(equity) + net_income

    balance_check = total_assets - (total_liabilities + total_equity)
    if balance_check:
        logger.warning("Balance sheet for %s / %s is off by %s",
                       client.client_code, period.name, balance_check)
    return {
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "net_income": net_income,
        "total_equity": total_equity,
        "balance_check": balance_check,
        "balanced": balance_check == 0,
    }


def monthly_profit_loss(client, year, month):
    """
    Sales vs expenses (expense + purchase day books) for one month,
    stored in ProfitLossSnapshot.
    """
    start, end = month_bounds(year, month)

    def month_sum(model):
        return model.objects.for_client(client).filter(
            date__gte=start, date__lte=end
        ).aggregate(s=Sum("amount"))["s"] or ZERO

    total_sales = month_sum(SalesEntry)
    total_expenses = month_sum(ExpenseEntry) + month_sum(PurchaseEntry)
    snapshot, _ = ProfitLossSnapshot.objects.update_or_create(
        client=client,
        year=year,
        month_number=month,
        defaults={
            "total_sales": total_sales,
            "total_expenses": total_expenses,
            "net_profit_loss": total_sales - total_expenses,
        },
    )
    return snapshot


def report_to_csv(rows) -> str:
    """Account rows (see account_balances) as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([
            row["code"],
            row["name"],
            row["account_type"],
            f"{row['debits']:.2f}",
            f"{row['credits']:.2f}",
            f"{row['balance']:.2f}",
        ])
    return buffer.getvalue()


# ----------------------------
# Position & tax registers
# ----------------------------
def net_worth(client):
    assets, liabilities, net = AssetLiabilityItem.net_worth(client)
    return {"total_assets": assets, "total_liabilities": liabilities, "net_worth": net}


def tax_totals(client):
    return TaxRecord.totals(client)
