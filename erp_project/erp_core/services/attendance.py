import datetime
import logging
from decimal import ROUND_HALF_UP, Decimal
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q
from ..models import (AccountingPeriod, AttendanceRecord, Employee,
                      MonthlyAttendanceSummary)
from ..models.employee import ATTENDANCE_STATUS
from .periods import month_bounds

logger = logging.getLogger(__name__)

VALID_STATUSES = {key for key, _ in ATTENDANCE_STATUS}


def attendance_percentage(present_days, half_days, total_days):
    """(present + half/2) / total * 100, one decimal; 0 for an empty month."""
    if not total_days:
        return Decimal("0.0")
    value = (Decimal(present_days) + Decimal(half_days) * Decimal("0.5")) \
        / Decimal(total_days) * 100
    return value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def working_days(year, month):
    """Monday to Friday in the month."""
    start, end = month_bounds(year, month)
    day, count = start, 0
    while day <= end:
        if day.weekday() < 5:
            count += 1
        day += datetime.timedelta(days=1)
    return count


def mark_attendance(employee, attendance_date, status, notes=""):
    """Record (or overwrite) an employee's mark for one day."""
    if status not in VALID_STATUSES:
        raise ValidationError(f"Unknown attendance status {status!r}")
    if employee.status != "active":
        raise ValidationError(f"{employee.name} is not an active employee")

    period = AccountingPeriod.objects.for_client(employee.client_id).filter(
        start_date__lte=attendance_date, end_date__gte=attendance_date
    ).order_by("status").first()

    record, created = AttendanceRecord.objects.update_or_create(
        employee=employee,
        attendance_date=attendance_date,
        defaults={
            "client_id": employee.client_id,
            "status": status,
            "notes": notes,
            "period": period,
        },
    )
    logger.debug("%s attendance %s for %s on %s",
                 "Created" if created else "Updated", status,
                 employee.employee_code, attendance_date)
    return record


@transaction.atomic
def summarize_month(client, year, month):
    """Rebuild MonthlyAttendanceSummary rows for every employee of the client."""
    start, end = month_bounds(year, month)
    total = working_days(year, month)

    counts = (
        AttendanceRecord.objects.for_client(client)
        .filter(attendance_date__gte=start, attendance_date__lte=end)
        .order_by()
        .values("employee_id")
        .annotate(
            present=Count("id", filter=Q(status="present")),
            absent=Count("id", filter=Q(status="absent")),
            leave=Count("id", filter=Q(status="leave")),
            half=Count("id", filter=Q(status="half_day")),
        )
    )
    by_employee = {row["employee_id"]: row for row in counts}

    summaries = []
    for employee in Employee.objects.for_client(client):
        row = by_employee.get(employee.pk, {})
        summary, _ = MonthlyAttendanceSummary.objects.update_or_create(
            client=client,
            employee=employee,
            year=year,
            month_number=month,
            defaults={
                "total_working_days": total,
                "present_days": row.get("present", 0),
                "absent_days": row.get("absent", 0),
                "leave_days": row.get("leave", 0),
                "half_days": row.get("half", 0),
            },
        )
        summaries.append(summary)
    return summaries


def monthly_report(client, year, month):
    rows = []
    summaries = (
        MonthlyAttendanceSummary.objects.for_client(client)
        .filter(year=year, month_number=month)
        .select_related("employee")
    )
    for s in summaries:
        rows.append({
            "employee_name": s.employee.name if s.employee else "Unknown",
            "employee_code": s.employee.employee_code if s.employee else "N/A",
            "year": s.year,
            "month_number": s.month_number,
            "total_working_days": s.total_working_days,
            "present_days": s.present_days,
            "absent_days": s.absent_days,
            "leave_days": s.leave_days,
            "half_days": s.half_days,
            "attendance_percentage": attendance_percentage(
                s.present_days, s.half_days, s.total_working_days),
        })
    return sorted(rows, key=lambda r: r["employee_name"])
