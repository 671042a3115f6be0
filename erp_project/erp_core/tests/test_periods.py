import datetime
from django.core.exceptions import ValidationError
from django.db.models.deletion import ProtectedError
from django.test import TestCase
from erp_core.exceptions import NoActivePeriodError
from erp_core.models import AccountingPeriod, FiscalYear
from erp_core.services.periods import (activate_period, close_period,
                                       create_default_period,
                                       create_fiscal_year, delete_period,
                                       get_active_fiscal_year,
                                       get_active_period, is_period_editable,
                                       lock_period, require_active_period,
                                       resolve_period, toggle_period_status)
from erp_core.services.posting import ensure_system_accounts, post_journal

from .helpers import make_client, make_period


class ActivePeriodTests(TestCase):

    def setUp(self):
        self.client_a = make_client("Alpha Ltd")
        self.sep = make_period(self.client_a)

    def test_created_period_becomes_the_only_active_one(self):
        october = make_period(
            self.client_a, "October 2025",
            datetime.date(2025, 10, 1), datetime.date(2025, 10, 31))

        self.sep.refresh_from_db()
        self.assertEqual(self.sep.status, "closed")
        self.assertEqual(october.status, "active")
        self.assertEqual(get_active_period(self.client_a), october)

    def test_activating_closes_every_other_active_period(self):
        october = make_period(
            self.client_a, "October 2025",
            datetime.date(2025, 10, 1), datetime.date(2025, 10, 31), activate=False)
        self.assertEqual(october.status, "closed")

        activate_period(october)

        self.assertEqual(
            AccountingPeriod.objects.for_client(self.client_a).filter(status="active").count(), 1)
        self.assertEqual(get_active_period(self.client_a).pk, october.pk)

    def test_second_active_row_is_rejected_by_validation(self):
        with self.assertRaises(ValidationError):
            AccountingPeriod.objects.create(
                client=self.client_a, name="Rogue", status="active",
                start_date=datetime.date(2025, 11, 1), end_date=datetime.date(2025, 11, 30))

    def test_other_clients_keep_their_active_period(self):
        client_b = make_client("Beta Ltd")
        beta_period = make_period(client_b)
        make_period(self.client_a, "October 2025",
                    datetime.date(2025, 10, 1), datetime.date(2025, 10, 31))

        beta_period.refresh_from_db()
        self.assertEqual(beta_period.status, "active")

    """ Toggle mirrors the period list switch """
    def test_toggle_switches_between_active_and_closed(self):
        toggle_period_status(self.sep)
        self.sep.refresh_from_db()
        self.assertEqual(self.sep.status, "closed")
        self.assertIsNone(get_active_period(self.client_a))

        toggle_period_status(self.sep)
        self.sep.refresh_from_db()
        self.assertEqual(self.sep.status, "active")

    def test_locked_period_never_reopens(self):
        lock_period(self.sep)
        self.assertFalse(is_period_editable(self.sep.__class__.objects.get(pk=self.sep.pk)))
        with self.assertRaises(ValidationError):
            activate_period(self.sep)
        with self.assertRaises(ValidationError):
            close_period(self.sep)

    def test_require_active_period_raises_without_one(self):
        close_period(self.sep)
        with self.assertRaises(NoActivePeriodError):
            require_active_period(self.client_a)


class PeriodRulesTests(TestCase):

    def setUp(self):
        self.client_a = make_client()

    def test_start_must_be_before_end(self):
        with self.assertRaises(ValidationError):
            make_period(self.client_a, "Backwards",
                        datetime.date(2025, 9, 30), datetime.date(2025, 9, 1))

    def test_period_must_fit_inside_its_fiscal_year(self):
        fy = FiscalYear.objects.create(
            client=self.client_a, name="2025",
            start_date=datetime.date(2025, 1, 1), end_date=datetime.date(2025, 12, 31))
        with self.assertRaises(ValidationError):
            make_period(self.client_a, "Spill", datetime.date(2025, 12, 1),
                        datetime.date(2026, 1, 31), fiscal_year=fy)

    def test_resolve_period_finds_the_period_containing_the_date(self):
        sep = make_period(self.client_a)
        self.assertEqual(resolve_period(self.client_a, datetime.date(2025, 9, 17)), sep)
        with self.assertRaises(ValidationError):
            resolve_period(self.client_a, datetime.date(2024, 1, 1))

    def test_default_period_is_current_calendar_month(self):
        period = create_default_period(self.client_a, datetime.date(2026, 2, 14))
        self.assertEqual(period.name, "February 2026")
        self.assertEqual(period.start_date, datetime.date(2026, 2, 1))
        self.assertEqual(period.end_date, datetime.date(2026, 2, 28))
        self.assertEqual(period.status, "active")

    def test_fiscal_year_generates_closed_month_periods(self):
        fy = create_fiscal_year(
            self.client_a, "FY2025-26",
            datetime.date(2025, 7, 1), datetime.date(2026, 6, 30), monthly_periods=True)

        months = list(fy.periods.order_by("start_date"))
        self.assertEqual(len(months), 12)
        self.assertEqual(months[0].name, "July 2025")
        self.assertEqual(months[-1].end_date, datetime.date(2026, 6, 30))
        self.assertTrue(all(p.status == "closed" for p in months))
        self.assertEqual(get_active_fiscal_year(self.client_a), fy)

    def test_fiscal_year_ending_on_first_of_month_is_refused(self):
        with self.assertRaises(ValidationError):
            create_fiscal_year(
                self.client_a, "FY-short",
                datetime.date(2025, 1, 1), datetime.date(2025, 12, 1), monthly_periods=True)
        self.assertFalse(FiscalYear.objects.filter(name="FY-short").exists())
        self.assertFalse(AccountingPeriod.objects.filter(client=self.client_a).exists())

    def test_period_with_posted_journals_cannot_be_deleted(self):
        period = make_period(self.client_a)
        accounts = ensure_system_accounts(self.client_a)
        post_journal(self.client_a, datetime.date(2025, 9, 5), [
            {"account": accounts["cash"], "debit": "50.00"},
            {"account": accounts["sales"], "credit": "50.00"},
        ])
        with self.assertRaises(ValidationError):
            delete_period(period)
        # the journal rows protect it at the database level too
        with self.assertRaises(ProtectedError):
            period.delete()

    def test_empty_period_can_be_deleted(self):
        period = make_period(self.client_a)
        delete_period(period)
        self.assertFalse(AccountingPeriod.objects.filter(pk=period.pk).exists())
