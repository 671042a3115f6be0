from django.contrib import admin

from ..models import AuditLog, ProfitLossSnapshot

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "client",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("client", "user")


@admin.register(ProfitLossSnapshot)
class ProfitLossSnapshotAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "client", "year", "month_number", "total_sales", "total_expenses",
        "net_profit_loss", "updated_at")
