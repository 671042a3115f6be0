import datetime
import json
from decimal import Decimal
from django.test import TestCase
from django.urls import reverse
from erp_core.models import (Account, AccountingPeriod, AuditLog, Customer,
                             Employee, Invoice, JournalEntry, SalesEntry)
from erp_core.services.invoicing import create_invoice
from erp_core.services.periods import close_period

from .helpers import (balance_of, make_client, make_ledger_client, make_period,
                      make_user)


class ApiTestCase(TestCase):

    def setUp(self):
        self.client_a, self.period, self.accounts = make_ledger_client("Client A")
        self.user = make_user(self.client_a)
        self.client.force_login(self.user)

    def post_json(self, url, data):
        return self.client.post(url, json.dumps(data), content_type="application/json")

    def patch_json(self, url, data):
        return self.client.patch(url, json.dumps(data), content_type="application/json")


class AccessTests(TestCase):

    def test_anonymous_request_is_forbidden(self):
        response = self.client.get(reverse("erp_core:accounts-list"))
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["ok"])

    def test_user_without_client_is_forbidden(self):
        user = make_user(make_client(), username="loner")
        user.default_client = None
        user.save()
        self.client.force_login(user)
        self.assertEqual(self.client.get(reverse("erp_core:trial-balance")).status_code, 403)


class ResourceTests(ApiTestCase):

    def test_list_only_shows_own_accounts(self):
        other, _, _ = make_ledger_client("Client B")
        Account.objects.create(client=other, code="9999", name="Hidden", account_type="asset")

        response = self.client.get(reverse("erp_core:accounts-list"))

        codes = [item["code"] for item in response.json()["items"]]
        self.assertIn("1000", codes)
        self.assertNotIn("9999", codes)

    def test_create_with_missing_fields_writes_nothing(self):
        response = self.post_json(reverse("erp_core:employees-list"),
                                  {"employee_code": "E-1", "name": " "})

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "Please fill in all required fields")
        self.assertEqual(body["missing"], ["name", "position"])
        self.assertEqual(Employee.objects.count(), 0)

    def test_create_update_and_delete(self):
        response = self.post_json(reverse("erp_core:customers-list"), {
            "customer_code": "C-9", "customer_name": "Bistro", "payment_terms": "14"})
        self.assertEqual(response.status_code, 201)
        pk = response.json()["item"]["id"]
        self.assertEqual(Customer.objects.get(pk=pk).client, self.client_a)

        url = reverse("erp_core:customers-detail", args=[pk])
        response = self.patch_json(url, {"customer_name": "Bistro Ltd"})
        self.assertEqual(response.json()["item"]["customer_name"], "Bistro Ltd")

        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertFalse(Customer.objects.filter(pk=pk).exists())
        self.assertEqual(
            list(AuditLog.objects.filter(object_type="Customer").values_list("action", flat=True)),
            ["delete", "update", "create"])

    def test_other_clients_row_is_not_found(self):
        other = make_client("Client B")
        foreign = Customer.objects.create(client=other, customer_code="X", customer_name="X")

        url = reverse("erp_core:customers-detail", args=[foreign.pk])
        self.assertEqual(self.client.get(url).status_code, 404)
        self.assertEqual(self.client.delete(url).status_code, 404)
        self.assertTrue(Customer.objects.filter(pk=foreign.pk).exists())

    def test_foreign_key_must_be_in_tenant(self):
        other = make_client("Client B")
        foreign = Customer.objects.create(client=other, customer_code="X", customer_name="X")

        response = self.post_json(reverse("erp_core:invoices-list"), {
            "invoice_number": "INV-1", "customer": foreign.pk,
            "invoice_date": "2025-09-05", "subtotal": "100.00"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(Invoice.objects.count(), 0)

    def test_sales_entry_is_posted_and_delete_reverses(self):
        response = self.post_json(reverse("erp_core:sales-list"), {
            "date": "2025-09-05", "description": "Till", "amount": "80.00"})
        self.assertEqual(response.status_code, 201)
        item = response.json()["item"]
        self.assertEqual(item["period"], self.period.pk)
        self.assertIsNotNone(item["journal"])

        self.client.delete(reverse("erp_core:sales-detail", args=[item["id"]]))
        self.assertEqual(SalesEntry.objects.count(), 0)
        self.assertTrue(JournalEntry.objects.filter(reverses_id=item["journal"]).exists())

    def test_deleting_referenced_customer_is_a_bad_request(self):
        customer = Customer.objects.create(
            client=self.client_a, customer_code="C-7", customer_name="Bistro")
        create_invoice(self.client_a, customer, "INV-7", datetime.date(2025, 9, 5),
                       Decimal("50.00"))

        response = self.client.delete(reverse("erp_core:customers-detail", args=[customer.pk]))

        self.assertEqual(response.status_code, 400)
        self.assertIn("still referenced", response.json()["error"])
        self.assertTrue(Customer.objects.filter(pk=customer.pk).exists())
        self.assertFalse(AuditLog.objects.filter(object_type="Customer", action="delete").exists())

    def test_deleting_account_with_ledger_rows_is_a_bad_request(self):
        self.post_json(reverse("erp_core:sales-list"), {
            "date": "2025-09-05", "description": "Till", "amount": "80.00"})

        cash = self.accounts["cash"]
        response = self.client.delete(reverse("erp_core:accounts-detail", args=[cash.pk]))

        self.assertEqual(response.status_code, 400)
        self.assertTrue(Account.objects.filter(pk=cash.pk).exists())

    def test_malformed_json_on_update_is_a_bad_request(self):
        customer = Customer.objects.create(
            client=self.client_a, customer_code="C-8", customer_name="Bistro")
        response = self.client.patch(reverse("erp_core:customers-detail", args=[customer.pk]),
                                     "{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Request body is not valid JSON")

    def test_invalid_amount_is_a_bad_request(self):
        response = self.post_json(reverse("erp_core:sales-list"), {
            "date": "2025-09-05", "description": "Till", "amount": "abc"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(SalesEntry.objects.count(), 0)


class PeriodEndpointTests(ApiTestCase):

    def test_active_period(self):
        response = self.client.get(reverse("erp_core:period-active"))
        self.assertEqual(response.json()["period"]["id"], self.period.pk)

    def test_creating_period_activates_it(self):
        response = self.post_json(reverse("erp_core:periods-list"), {
            "name": "October 2025", "start_date": "2025-10-01", "end_date": "2025-10-31",
            "status": "closed"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["item"]["status"], "active")
        self.period.refresh_from_db()
        self.assertEqual(self.period.status, "closed")
        self.assertEqual(
            AccountingPeriod.objects.filter(client=self.client_a, status="active").count(), 1)

    def test_activate_and_close(self):
        october = make_period(self.client_a, "October 2025", datetime.date(2025, 10, 1),
                              datetime.date(2025, 10, 31), activate=False)

        response = self.client.post(reverse("erp_core:period-activate", args=[october.pk]))
        self.assertEqual(response.json()["status"], "active")

        response = self.client.post(reverse("erp_core:period-close", args=[october.pk]))
        self.assertEqual(response.json()["status"], "closed")
        self.assertIsNone(self.client.get(reverse("erp_core:period-active")).json()["period"])


class JournalEndpointTests(ApiTestCase):

    def test_post_balanced_journal(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-09-10",
            "description": "Capital",
            "lines": [
                {"account": self.accounts["cash"].pk, "debit": "500.00"},
                {"account": self.accounts["equity"].pk, "credit": "500.00"},
            ],
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["status"], "posted")

        ledger = self.client.get(reverse("erp_core:ledger")).json()["items"]
        self.assertEqual(len(ledger), 2)

    def test_unbalanced_journal_is_refused(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-09-10",
            "lines": [
                {"account": self.accounts["cash"].pk, "debit": "500.00"},
                {"account": self.accounts["equity"].pk, "credit": "400.00"},
            ],
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("Journal not balanced", response.json()["error"])
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_account_ids_sent_as_strings_are_accepted(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-09-10",
            "lines": [
                {"account": str(self.accounts["cash"].pk), "debit": "20.00"},
                {"account": str(self.accounts["equity"].pk), "credit": "20.00"},
            ],
        })
        self.assertEqual(response.status_code, 201)

    def test_non_numeric_account_is_refused(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-09-10",
            "lines": [
                {"account": "cash", "debit": "20.00"},
                {"account": self.accounts["equity"].pk, "credit": "20.00"},
            ],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_malformed_entry_date_is_refused(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-13-45",
            "lines": [
                {"account": self.accounts["cash"].pk, "debit": "20.00"},
                {"account": self.accounts["equity"].pk, "credit": "20.00"},
            ],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Enter a valid date for entry_date")
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_reverse_journal(self):
        response = self.post_json(reverse("erp_core:journal-post"), {
            "entry_date": "2025-09-10",
            "lines": [
                {"account": self.accounts["cash"].pk, "debit": "5"},
                {"account": self.accounts["sales"].pk, "credit": "5"},
            ],
        })
        pk = response.json()["journal"]
        response = self.client.post(reverse("erp_core:journal-reverse", args=[pk]))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(self.client.post(
            reverse("erp_core:journal-reverse", args=[pk])).status_code, 400)


class InvoiceEndpointTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        customer = Customer.objects.create(
            client=self.client_a, customer_code="C-1", customer_name="Bistro")
        self.invoice = create_invoice(self.client_a, customer, "INV-1",
                                      datetime.date(2025, 9, 5), Decimal("100.00"))

    def test_send_and_pay(self):
        response = self.client.post(reverse("erp_core:invoice-send", args=[self.invoice.pk]))
        self.assertEqual(response.json()["status"], "sent")

        response = self.post_json(reverse("erp_core:invoice-pay", args=[self.invoice.pk]),
                                  {"amount": "40.00", "payment_date": "2025-09-20"})
        self.assertEqual(response.json()["outstanding"], "60.00")

        response = self.post_json(reverse("erp_core:invoice-pay", args=[self.invoice.pk]),
                                  {"amount": "60.00", "payment_date": "2025-09-21"})
        self.assertEqual(response.json()["status"], "paid")

    def test_paying_a_draft_is_refused(self):
        response = self.post_json(reverse("erp_core:invoice-pay", args=[self.invoice.pk]),
                                  {"amount": "10.00", "payment_date": "2025-09-20"})
        self.assertEqual(response.status_code, 400)

    def test_malformed_payment_date_is_refused(self):
        self.client.post(reverse("erp_core:invoice-send", args=[self.invoice.pk]))
        response = self.post_json(reverse("erp_core:invoice-pay", args=[self.invoice.pk]),
                                  {"amount": "40.00", "payment_date": "next friday"})
        self.assertEqual(response.status_code, 400)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))

    def test_sent_invoice_amount_cannot_be_patched(self):
        self.client.post(reverse("erp_core:invoice-send", args=[self.invoice.pk]))
        url = reverse("erp_core:invoices-detail", args=[self.invoice.pk])

        response = self.patch_json(url, {"subtotal": "5000.00"})

        self.assertEqual(response.status_code, 400)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.subtotal, Decimal("100.00"))
        self.assertEqual(balance_of(self.accounts["receivables"]), self.invoice.total_amount)

    def test_sent_invoice_notes_can_still_be_patched(self):
        self.client.post(reverse("erp_core:invoice-send", args=[self.invoice.pk]))
        url = reverse("erp_core:invoices-detail", args=[self.invoice.pk])
        response = self.patch_json(url, {"notes": "Call before delivery"})
        self.assertEqual(response.status_code, 200)

    def test_other_client_cannot_send(self):
        intruder = make_user(make_client("Client B"), username="mallory")
        self.client.force_login(intruder)
        response = self.client.post(reverse("erp_core:invoice-send", args=[self.invoice.pk]))
        self.assertEqual(response.status_code, 404)


class ReportEndpointTests(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.post_json(reverse("erp_core:sales-list"), {
            "date": "2025-09-05", "description": "Till", "amount": "80.00"})

    def test_trial_balance(self):
        body = self.client.get(reverse("erp_core:trial-balance")).json()
        self.assertTrue(body["balanced"])
        self.assertEqual(body["total_debit"], "80.00")

    def test_balance_sheet_balances(self):
        body = self.client.get(reverse("erp_core:balance-sheet")).json()
        self.assertTrue(body["balanced"])

    def test_csv_download(self):
        response = self.client.get(reverse("erp_core:report-csv"))
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("financial-report-2025-09.csv", response["Content-Disposition"])
        first_line = response.content.decode().splitlines()[0]
        self.assertEqual(first_line, "Account Code,Account Name,Type,Debits,Credits,Balance")

    def test_report_without_active_period(self):
        close_period(self.period)
        response = self.client.get(reverse("erp_core:income-statement"))
        self.assertEqual(response.status_code, 400)
        self.assertIn("No active accounting period", response.json()["error"])


class AttendanceEndpointTests(ApiTestCase):

    def test_mark_and_summarize(self):
        employee = Employee.objects.create(
            client=self.client_a, employee_code="E-1", name="Dana", position="Clerk")
        response = self.post_json(reverse("erp_core:attendance-mark"), {
            "employee": employee.pk, "attendance_date": "2025-09-01", "status": "present"})
        self.assertEqual(response.json()["status"], "present")

        rows = self.client.get(reverse("erp_core:attendance-summary"),
                               {"year": 2025, "month": 9}).json()["rows"]
        self.assertEqual(rows[0]["present_days"], 1)
        self.assertEqual(rows[0]["attendance_percentage"], "4.5")

    def test_malformed_attendance_date_is_refused(self):
        employee = Employee.objects.create(
            client=self.client_a, employee_code="E-2", name="Sam", position="Clerk")
        response = self.post_json(reverse("erp_core:attendance-mark"), {
            "employee": employee.pk, "attendance_date": "01/09/2025", "status": "present"})
        self.assertEqual(response.status_code, 400)

    def test_bad_month_is_refused(self):
        response = self.client.get(reverse("erp_core:attendance-summary"),
                                   {"year": 2025, "month": 13})
        self.assertEqual(response.status_code, 400)
