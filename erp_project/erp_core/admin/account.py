from django.contrib import admin
from ..models import Account
from .mixins import TenantAdminMixin


# Register `Account` model
@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "client", "code", "name", "account_type", "parent", "is_active")
    list_filter = ("client", "account_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("client", "code")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("client", "parent")

    # Accounts with ledger rows are deactivated, never deleted
    def has_delete_permission(self, request, obj=None):
        if obj and obj.ledgerentry_set.exists():
            return False
        return super().has_delete_permission(request, obj)
