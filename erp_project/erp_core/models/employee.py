from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .period import AccountingPeriod
from .tenancy import Client

EMPLOYEE_STATUS = [
    ("active", "Active"),
    ("inactive", "Inactive"),
]

ATTENDANCE_STATUS = [
    ("present", "Present"),
    ("absent", "Absent"),
    ("leave", "Leave"),
    ("half_day", "Half day"),
]


# ---------- Employee ----------
class Employee(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    employee_code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    department = models.CharField(max_length=100, blank=True)
    position = models.CharField(max_length=100)
    hire_date = models.DateField(null=True, blank=True)
    salary = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=10, choices=EMPLOYEE_STATUS, default="active")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "employee_code"],
                name="uq_client_employee_code"),
        ]
        ordering = ("client", "employee_code")

    def __str__(self):
        return f"{self.employee_code} {self.name}"

    def clean(self):
        if self.salary is not None and self.salary < 0:
            raise ValidationError("Salary cannot be negative")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Daily attendance ----------
class AttendanceRecord(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    employee = models.ForeignKey(
        Employee, on_delete=models.CASCADE, related_name="attendance")
    attendance_date = models.DateField()
    status = models.CharField(max_length=10, choices=ATTENDANCE_STATUS)
    notes = models.TextField(blank=True)
    period = models.ForeignKey(
        AccountingPeriod, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        # one mark per employee per day; re-marking updates it
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "attendance_date"],
                name="uq_employee_attendance_date"),
        ]
        indexes = [models.Index(fields=["client", "attendance_date"])]
        ordering = ("client", "-attendance_date")

    def __str__(self):
        return f"{self.employee} {self.attendance_date} {self.status}"

    def clean(self):
        if self.employee_id and self.employee.client_id != self.client_id:
            raise ValidationError("Employee must belong to the same client.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Monthly roll-up ----------
class MonthlyAttendanceSummary(models.Model):
    """Rebuilt by services.attendance.summarize_month()."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE)
    # kept when the employee is deleted; reports show "Unknown"
    employee = models.ForeignKey(
        Employee,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="monthly_summaries",
    )
    year = models.PositiveSmallIntegerField()
    month_number = models.PositiveSmallIntegerField()
    total_working_days = models.PositiveSmallIntegerField(default=0)
    present_days = models.PositiveSmallIntegerField(default=0)
    absent_days = models.PositiveSmallIntegerField(default=0)
    leave_days = models.PositiveSmallIntegerField(default=0)
    half_days = models.PositiveSmallIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "year", "month_number"],
                name="uq_employee_month_summary"),
        ]
        indexes = [models.Index(fields=["client", "year", "month_number"])]
        verbose_name_plural = "monthly attendance summaries"

    def __str__(self):
        return f"{self.employee} {self.year}-{self.month_number:02d}"

    @property
    def attendance_percentage(self):
        from ..services.attendance import attendance_percentage

        return attendance_percentage(
            self.present_days, self.half_days, self.total_working_days)
