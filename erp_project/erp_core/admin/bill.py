from django.contrib import admin
from ..models import Bill, Vendor
from .actions import approve_bills
from .mixins import TenantAdminMixin


# Register `Bill` model
@admin.register(Bill)
class BillAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "bill_number",
        "vendor",
        "bill_date",
        "due_date",
        "status",
        "total_amount",
        "outstanding_amount",
    )
    list_filter = ("client", "status", "bill_date")
    actions = [approve_bills]
    search_fields = ("bill_number", "vendor__vendor_name")
    readonly_fields = ("total_amount", "paid_amount", "status")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client", "vendor", "period")

    def get_readonly_fields(self, request, obj=None):
        if obj and obj.status in ("paid", "cancelled"):
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.paid_amount > 0:
            return False
        return super().has_delete_permission(request, obj)


# Register `Vendor` model
@admin.register(Vendor)
class VendorAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "client", "vendor_code", "vendor_name", "email", "payment_terms", "is_active")
    search_fields = ("vendor_code", "vendor_name", "email")
    list_filter = ("client", "is_active")
