from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from ..models import CashBookEntry, ExpenseEntry, PurchaseEntry, SalesEntry
from ..services.posting import delete_daybook_entry
from .mixins import TenantAdminMixin


class DayBookAdmin(TenantAdminMixin, admin.ModelAdmin):
    """
    Day book rows are recorded through the API (which posts the journal);
    the admin browses them and deletes with a reversal.
    """

    list_display = ("id", "client", "date", "description", "category", "amount", "journal")
    list_filter = ("client", "period")
    search_fields = ("description", "category")
    actions = ["delete_with_reversal"]

    def has_add_permission(self, request):
        return False

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def get_actions(self, request):
        # the stock bulk delete would skip the reversal
        actions = super().get_actions(request)
        actions.pop("delete_selected", None)
        return actions

    def delete_model(self, request, obj):
        delete_daybook_entry(obj, user=request.user)

    @admin.action(description="Delete selected (reverse ledger postings)")
    def delete_with_reversal(self, request, queryset):
        for entry in queryset:
            try:
                delete_daybook_entry(entry, user=request.user)
            except ValidationError as exc:
                self.message_user(
                    request, f"{entry}: {'; '.join(exc.messages)}", level=messages.ERROR)


@admin.register(SalesEntry)
class SalesEntryAdmin(DayBookAdmin):
    pass


@admin.register(ExpenseEntry)
class ExpenseEntryAdmin(DayBookAdmin):
    pass


@admin.register(PurchaseEntry)
class PurchaseEntryAdmin(DayBookAdmin):
    list_display = DayBookAdmin.list_display + ("payment_status",)


@admin.register(CashBookEntry)
class CashBookEntryAdmin(DayBookAdmin):
    list_display = (
        "id", "client", "entry_date", "voucher_number", "particulars",
        "transaction_type", "account_type", "amount", "journal")
    list_filter = ("client", "period", "transaction_type", "account_type")
    search_fields = ("particulars", "voucher_number", "narration")
