import datetime
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from erp_core.models import AttendanceRecord, Employee, MonthlyAttendanceSummary
from erp_core.services.attendance import (attendance_percentage,
                                          mark_attendance, monthly_report,
                                          summarize_month, working_days)

from .helpers import make_client, make_period


class AttendanceMathTests(TestCase):

    def test_percentage_counts_half_days_as_half(self):
        self.assertEqual(attendance_percentage(18, 2, 22), Decimal("86.4"))
        self.assertEqual(attendance_percentage(22, 0, 22), Decimal("100.0"))

    def test_percentage_rounds_half_up(self):
        # 1 / 16 * 100 = 6.25
        self.assertEqual(attendance_percentage(1, 0, 16), Decimal("6.3"))

    def test_empty_month_is_zero_percent(self):
        self.assertEqual(attendance_percentage(0, 0, 0), Decimal("0.0"))

    def test_working_days_skip_weekends(self):
        self.assertEqual(working_days(2025, 9), 22)
        self.assertEqual(working_days(2026, 2), 20)


class MarkAttendanceTests(TestCase):

    def setUp(self):
        self.client_a = make_client()
        self.period = make_period(self.client_a)
        self.employee = Employee.objects.create(
            client=self.client_a, employee_code="E-001", name="Dana", position="Clerk")

    def test_mark_links_period_and_client(self):
        record = mark_attendance(self.employee, datetime.date(2025, 9, 3), "present")
        self.assertEqual(record.client, self.client_a)
        self.assertEqual(record.period, self.period)

    def test_marking_same_day_again_updates_the_record(self):
        day = datetime.date(2025, 9, 4)
        mark_attendance(self.employee, day, "present")
        mark_attendance(self.employee, day, "leave", notes="Doctor")

        record = AttendanceRecord.objects.get(employee=self.employee, attendance_date=day)
        self.assertEqual(record.status, "leave")
        self.assertEqual(record.notes, "Doctor")
        self.assertEqual(AttendanceRecord.objects.count(), 1)

    def test_day_outside_periods_has_no_period(self):
        record = mark_attendance(self.employee, datetime.date(2024, 1, 2), "absent")
        self.assertIsNone(record.period)

    def test_unknown_status_is_refused(self):
        with self.assertRaises(ValidationError):
            mark_attendance(self.employee, datetime.date(2025, 9, 3), "late")

    def test_inactive_employee_is_refused(self):
        self.employee.status = "inactive"
        self.employee.save()
        with self.assertRaises(ValidationError):
            mark_attendance(self.employee, datetime.date(2025, 9, 3), "present")


class MonthlySummaryTests(TestCase):

    def setUp(self):
        self.client_a = make_client()
        make_period(self.client_a)
        self.dana = Employee.objects.create(
            client=self.client_a, employee_code="E-001", name="Dana", position="Clerk")
        self.ari = Employee.objects.create(
            client=self.client_a, employee_code="E-002", name="Ari", position="Driver")
        for day, status in [(1, "present"), (2, "present"), (3, "half_day"),
                            (4, "absent"), (5, "leave")]:
            mark_attendance(self.dana, datetime.date(2025, 9, day), status)
        # August marks stay out of September's summary
        mark_attendance(self.dana, datetime.date(2025, 8, 29), "present")

    def test_summary_counts_each_status(self):
        summarize_month(self.client_a, 2025, 9)
        summary = MonthlyAttendanceSummary.objects.get(employee=self.dana, year=2025, month_number=9)
        self.assertEqual(summary.total_working_days, 22)
        self.assertEqual(
            (summary.present_days, summary.half_days, summary.absent_days, summary.leave_days),
            (2, 1, 1, 1))
        self.assertEqual(summary.attendance_percentage, Decimal("11.4"))

    def test_employee_without_marks_gets_empty_summary(self):
        summarize_month(self.client_a, 2025, 9)
        summary = MonthlyAttendanceSummary.objects.get(employee=self.ari, year=2025, month_number=9)
        self.assertEqual(summary.present_days, 0)

    def test_rebuilding_does_not_duplicate(self):
        summarize_month(self.client_a, 2025, 9)
        summarize_month(self.client_a, 2025, 9)
        self.assertEqual(MonthlyAttendanceSummary.objects.filter(year=2025, month_number=9).count(), 2)

    def test_report_sorted_by_name_with_unknown_for_deleted_employee(self):
        summarize_month(self.client_a, 2025, 9)
        self.ari.delete()

        rows = monthly_report(self.client_a, 2025, 9)

        self.assertEqual([r["employee_name"] for r in rows], ["Dana", "Unknown"])
        self.assertEqual(rows[1]["employee_code"], "N/A")
        self.assertEqual(rows[0]["attendance_percentage"], Decimal("11.4"))
