from django.contrib import admin

from ledger_core.models import (Account, DirectPurchaseOrderExpense,
                                DirectPurchaseOrderItem, SalesInvoiceItem,
                                VoucherEntry)

# ---------- Helpful inline admin classes ----------


class VoucherEntryInline(admin.TabularInline):
    """Show VoucherEntry rows on the Voucher page"""

    model = VoucherEntry
    extra = 0  # don't show "empty" rows by default
    fields = ("sort_order", "account", "description", "debit", "credit")
    ordering = ("sort_order", "id")

    def formfield_for_foreignkey(self, db_field, request=None, **kwargs):
        # only accounts open for new postings
        if db_field.name == "account":
            kwargs["queryset"] = Account.objects.active().select_related("subgroup")
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account")

    """ Posted entries are read-only """

    def has_add_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_delete_permission(request, obj)


class DirectPurchaseOrderItemInline(admin.TabularInline):
    model = DirectPurchaseOrderItem
    extra = 0
    fields = ("part", "quantity", "purchase_price", "amount", "remarks")
    readonly_fields = fields  # booked at creation


class DirectPurchaseOrderExpenseInline(admin.TabularInline):
    model = DirectPurchaseOrderExpense
    extra = 0
    fields = ("expense_type", "payable_account", "description", "amount")
    readonly_fields = fields


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0
    fields = ("part", "quantity", "unit_price", "discount", "line_total")
    readonly_fields = fields
