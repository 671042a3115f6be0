from django.contrib import admin
from ..models import AttendanceRecord, Employee, MonthlyAttendanceSummary
from .inlines import AttendanceInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(Employee)
class EmployeeAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "employee_code", "name", "department", "position", "hire_date", "salary", "status")
    list_filter = ("client", "status", "department")
    search_fields = ("employee_code", "name", "email")
    inlines = [AttendanceInline]


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("attendance_date", "employee", "status", "period")
    list_filter = ("client", "status", "attendance_date")
    search_fields = ("employee__name", "employee__employee_code")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("employee", "period")


# rebuilt by services.attendance.summarize_month
@admin.register(MonthlyAttendanceSummary)
class MonthlyAttendanceSummaryAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "employee", "year", "month_number", "total_working_days", "present_days",
        "absent_days", "leave_days", "half_days", "attendance_percentage")
