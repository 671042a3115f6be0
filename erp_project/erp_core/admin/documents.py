from django.contrib import admin
from ..models import (AssetLiabilityItem, Challan, InventoryItem, LegalDocument,
                      TaxRecord)
from .mixins import TenantAdminMixin


@admin.register(LegalDocument)
class LegalDocumentAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("title", "document_type", "document_number", "expiry_date", "status")
    list_filter = ("client", "document_type", "status")
    search_fields = ("title", "document_number", "authority")


@admin.register(Challan)
class ChallanAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("challan_number", "date", "sender_name", "receiver_name", "truck_number")
    list_filter = ("client", "date")
    search_fields = ("challan_number", "receiver_name", "truck_number")


@admin.register(InventoryItem)
class InventoryItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "current_stock", "updated_at")
    list_filter = ("client",)
    search_fields = ("name",)


@admin.register(AssetLiabilityItem)
class AssetLiabilityItemAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("kind", "category", "description", "amount", "as_of")
    list_filter = ("client", "kind")


@admin.register(TaxRecord)
class TaxRecordAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("tax_type", "period_label", "amount", "due_date", "status")
    list_filter = ("client", "status", "tax_type")
