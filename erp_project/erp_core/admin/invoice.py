from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404, redirect
from django.urls import path
from ..models import Customer, Invoice
from ..services.invoicing import send_invoice
from .actions import send_invoices
from .mixins import TenantAdminMixin


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "invoice_number",
        "customer",
        "invoice_date",
        "due_date",
        "status",
        "total_amount",
        "outstanding_amount",
    )
    list_filter = ("client", "status", "invoice_date")
    actions = [send_invoices]
    search_fields = ("invoice_number", "customer__customer_name")
    readonly_fields = ("total_amount", "paid_amount", "status")

    def get_urls(self):
        urls = super().get_urls()
        custom = [
            path('<path:object_id>/send/', self.admin_site.admin_view(self.send_invoice_view),
                 name='erp_core_invoice_send'),
        ]
        return custom + urls

    def send_invoice_view(self, request, object_id):
        inv = get_object_or_404(self.get_queryset(request), pk=object_id)
        try:
            send_invoice(inv, user=request.user)
            messages.success(request, f"Invoice {inv} sent.")
        except ValidationError as exc:
            messages.error(request, f"Failed to send invoice: {'; '.join(exc.messages)}")
        # send user back to invoice change page
        return redirect(request.META.get("HTTP_REFERER") or f"../../{object_id}/change/")

    def get_queryset(self, request):
        # Use a SQL join so it fetches client & customer
        # in the same query as Invoice
        return super().get_queryset(request).select_related("client", "customer", "period")

    """ Enforce immutability at admin level """

    def get_readonly_fields(self, request, obj=None):
        # Paid and cancelled invoices are fully read-only
        if obj and obj.status in ("paid", "cancelled"):
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.paid_amount > 0:
            return False  # removes “Delete” option from admin for that invoice
        return super().has_delete_permission(request, obj)


# Register `Customer` model
@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "client",
        "customer_code",
        "customer_name",
        "email",
        "payment_terms",
        "credit_limit",
        "is_active",
    )
    search_fields = ("customer_code", "customer_name", "email")
    list_filter = ("client", "is_active")
