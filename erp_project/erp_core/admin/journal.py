from decimal import Decimal
from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.html import format_html
from ..models import JournalEntry, LedgerEntry
from ..services.posting import reverse_journal
from .inlines import LedgerEntryInline
from .mixins import TenantAdminMixin


# Register `JournalEntry` model
@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    """Journals are written by the posting services; admin only views/reverses."""

    list_display = (
        "id",
        "client",
        "entry_date",
        "description",
        "reference_type",
        "status",
        "posted_at",
        "posted_by",
        "balanced",
    )
    list_filter = ("client", "status", "reference_type", "entry_date")
    search_fields = ("description", "id")
    inlines = [LedgerEntryInline]
    actions = ["reverse_selected"]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    """ Prevent deletion after posting """
    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == "posted":
            return False  # corrected by reversal instead
        return super().has_delete_permission(request, obj)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("client", "period", "posted_by")

    """ Computed column for balance check """
    def balanced(self, obj):
        d, c = obj.compute_totals()
        # format: bold debits / small credits
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.00"),
            c or Decimal("0.00")
        )

    # set column header in admin
    balanced.short_description = "Debits / Credits"

    @admin.action(description="Reverse selected journals")
    def reverse_selected(self, request, queryset):
        for je in queryset.filter(status="posted"):
            try:
                reverse_journal(je, user=request.user)
                self.message_user(request, f"Reversed JE {je.pk}")
            except ValidationError as exc:
                self.message_user(
                    request, f"Failed to reverse JE {je.pk}: {'; '.join(exc.messages)}",
                    level=messages.ERROR)


# Register `LedgerEntry` model
@admin.register(LedgerEntry)
class LedgerEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "transaction_date",
        "journal",
        "account",
        "debit_amount",
        "credit_amount",
        "period",
    )
    list_filter = ("client", "period", "account__account_type")
    search_fields = ("description", "account__code", "account__name")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("client", "journal", "account", "period")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.concrete_fields]

    # lines should be created only via services.posting
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
