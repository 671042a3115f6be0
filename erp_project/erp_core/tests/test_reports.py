import csv
import datetime
import io
from decimal import Decimal
from django.test import TestCase
from erp_core.models import ProfitLossSnapshot
from erp_core.services.posting import (post_journal, record_expense_entry,
                                       record_purchase_entry,
                                       record_sales_entry)
from erp_core.services.reports import (CSV_HEADER, account_balances,
                                       balance_sheet, income_statement,
                                       monthly_profit_loss, report_to_csv,
                                       trial_balance)

from .helpers import make_ledger_client, make_period

SEP_2 = datetime.date(2025, 9, 2)
SEP_12 = datetime.date(2025, 9, 12)


class FinancialReportTests(TestCase):
    """
    Owner puts 1000 in, sells 300 for cash, pays 100 of expenses and
    buys 50 of stock on credit.
    """

    def setUp(self):
        self.client_a, self.period, self.accounts = make_ledger_client()
        post_journal(self.client_a, SEP_2, [
            {"account": self.accounts["cash"], "debit": "1000.00"},
            {"account": self.accounts["equity"], "credit": "1000.00"},
        ], description="Opening capital")
        record_sales_entry(self.client_a, SEP_12, "Sales", "300.00")
        record_expense_entry(self.client_a, SEP_12, "Rent", "100.00")
        record_purchase_entry(self.client_a, SEP_12, "Stock", "50.00",
                              payment_status="pending")

    def row_for(self, rows, key):
        code = self.accounts[key].code
        return next(r for r in rows if r["code"] == code)

    def test_balances_follow_normal_side(self):
        rows = account_balances(self.client_a, self.period)
        self.assertEqual(self.row_for(rows, "cash")["balance"], Decimal("1200.00"))
        self.assertEqual(self.row_for(rows, "sales")["balance"], Decimal("300.00"))
        self.assertEqual(self.row_for(rows, "payables")["balance"], Decimal("50.00"))
        self.assertEqual(self.row_for(rows, "bank")["balance"], Decimal("0.00"))

    def test_trial_balance_is_balanced(self):
        tb = trial_balance(self.client_a, self.period)
        self.assertTrue(tb["balanced"])
        self.assertEqual(tb["total_debit"], Decimal("1350.00"))
        self.assertEqual(tb["total_credit"], Decimal("1350.00"))
        # untouched accounts are left out
        codes = {r["code"] for r in tb["rows"]}
        self.assertNotIn(self.accounts["bank"].code, codes)

    def test_income_statement(self):
        report = income_statement(self.client_a, self.period)
        self.assertEqual(report["total_revenue"], Decimal("300.00"))
        self.assertEqual(report["total_expenses"], Decimal("150.00"))
        self.assertEqual(report["net_income"], Decimal("150.00"))

    def test_balance_sheet_balances_with_period_result(self):
        sheet = balance_sheet(self.client_a, self.period)
        self.assertEqual(sheet["total_assets"], Decimal("1200.00"))
        self.assertEqual(sheet["total_liabilities"], Decimal("50.00"))
        self.assertEqual(sheet["total_equity"], Decimal("1150.00"))
        self.assertEqual(sheet["balance_check"], Decimal("0.00"))
        self.assertTrue(sheet["balanced"])

    def test_other_periods_are_not_counted(self):
        october = make_period(self.client_a, "October 2025",
                              datetime.date(2025, 10, 1), datetime.date(2025, 10, 31))
        rows = account_balances(self.client_a, october)
        self.assertTrue(all(r["balance"] == Decimal("0.00") for r in rows))

    def test_other_clients_postings_are_not_counted(self):
        other, _, _ = make_ledger_client("Other Co")
        record_sales_entry(other, SEP_12, "Other sales", "999.00")
        report = income_statement(self.client_a, self.period)
        self.assertEqual(report["total_revenue"], Decimal("300.00"))

    def test_monthly_profit_loss_snapshot(self):
        snapshot = monthly_profit_loss(self.client_a, 2025, 9)
        self.assertEqual(snapshot.total_sales, Decimal("300.00"))
        self.assertEqual(snapshot.total_expenses, Decimal("150.00"))
        self.assertEqual(snapshot.net_profit_loss, Decimal("150.00"))

        # rerunning updates the same row
        record_sales_entry(self.client_a, SEP_12, "Late sale", "20.00")
        snapshot = monthly_profit_loss(self.client_a, 2025, 9)
        self.assertEqual(snapshot.net_profit_loss, Decimal("170.00"))
        self.assertEqual(ProfitLossSnapshot.objects.filter(client=self.client_a).count(), 1)

    def test_empty_month_has_zero_result(self):
        snapshot = monthly_profit_loss(self.client_a, 2025, 8)
        self.assertEqual(snapshot.net_profit_loss, Decimal("0.00"))

    def test_csv_export(self):
        text = report_to_csv(account_balances(self.client_a, self.period))
        rows = list(csv.reader(io.StringIO(text)))
        self.assertEqual(rows[0], CSV_HEADER)
        cash = next(r for r in rows if r[0] == self.accounts["cash"].code)
        self.assertEqual(cash, ["1000", "Cash in Hand", "asset", "1300.00", "100.00", "1200.00"])
