from django.contrib import admin

from ..models import AttendanceRecord, LedgerEntry, Membership

# ---------- Helpful inline admin classes ----------


class LedgerEntryInline(
    admin.TabularInline
    # shows related objects in table format (rows under parent form)
):
    """Show ledger rows on the JournalEntry page (read-only)."""

    model = LedgerEntry
    extra = 0  # don’t show “empty” rows by default (prevents clutter)
    fields = ("account", "description", "debit_amount", "credit_amount")
    readonly_fields = fields
    can_delete = False

    # lines are only written by services.posting.post_journal
    def has_add_permission(self, request, obj=None):
        return False


class MembershipInline(admin.TabularInline):
    model = Membership
    extra = 0
    fields = ("user", "role", "is_active")
    autocomplete_fields = ("user",)


class AttendanceInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0
    fields = ("attendance_date", "status", "notes")
    ordering = ("-attendance_date",)
    show_change_link = True
