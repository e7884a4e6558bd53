from django.contrib import admin

from ledger_core.models import (Customer, DirectPurchaseOrder, Part,
                                SalesInvoice, Supplier)

from .actions import approve_invoices
from .inlines import (DirectPurchaseOrderExpenseInline,
                      DirectPurchaseOrderItemInline, SalesInvoiceItemInline)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "company_name", "opening_balance", "payable_account")
    search_fields = ("name", "company_name")
    readonly_fields = ("payable_account",)  # opened on first purchase


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "opening_balance", "receivable_account")
    search_fields = ("name",)
    readonly_fields = ("receivable_account",)


@admin.register(Part)
class PartAdmin(admin.ModelAdmin):
    list_display = ("part_no", "description", "brand", "cost", "price")
    search_fields = ("part_no", "description", "brand")


@admin.register(DirectPurchaseOrder)
class DirectPurchaseOrderAdmin(admin.ModelAdmin):
    """DPOs are created through the posting service; admin is a read view."""

    list_display = (
        "dpo_no",
        "date",
        "supplier",
        "store",
        "status",
        "total_amount",
        "paid_amount",
        "journal_voucher",
    )
    list_filter = ("status", "date")
    search_fields = ("dpo_no", "supplier__name")
    list_select_related = ("supplier", "journal_voucher")
    inlines = [DirectPurchaseOrderItemInline, DirectPurchaseOrderExpenseInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_no",
        "date",
        "customer",
        "customer_name",
        "grand_total",
        "status",
        "approved_by",
    )
    list_filter = ("status", "date")
    search_fields = ("invoice_no", "customer__name", "customer_name")
    list_select_related = ("customer",)
    readonly_fields = ("status", "approved_by", "approved_at")
    inlines = [SalesInvoiceItemInline]
    actions = [approve_invoices]

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == "approved":
            return False
        return super().has_delete_permission(request, obj)
