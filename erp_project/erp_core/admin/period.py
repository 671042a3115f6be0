from django.contrib import admin

from ..models import AccountingPeriod, FiscalYear
from .actions import activate_periods, close_periods
from .mixins import TenantAdminMixin


# Register `FiscalYear` model
@admin.register(FiscalYear)
class FiscalYearAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "client", "name", "start_date", "end_date", "status")
    list_filter = ("client", "status")
    search_fields = ("name",)


# Register `AccountingPeriod` model
@admin.register(AccountingPeriod)
class AccountingPeriodAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "client", "name", "period_type", "start_date", "end_date", "status")
    list_filter = ("client", "status", "period_type")
    search_fields = ("name",)
    actions = [activate_periods, close_periods]

    # status changes only through the actions above
    def get_readonly_fields(self, request, obj=None):
        return ("status",) if obj else ()

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client", "fiscal_year")
