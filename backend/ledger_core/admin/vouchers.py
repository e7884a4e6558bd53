from decimal import Decimal
from django.contrib import admin
from django.utils.html import format_html

from ledger_core.models import NumberSequence, Voucher

from .actions import cancel_vouchers, post_vouchers
from .inlines import VoucherEntryInline


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = (
        "voucher_number",
        "voucher_type",
        "date",
        "status",
        "narration",
        "balanced",
        "posted_at",
    )
    list_filter = ("voucher_type", "status", "date")
    search_fields = ("voucher_number", "narration", "entries__description")
    readonly_fields = (
        "voucher_number",
        "status",
        "total_debit",
        "total_credit",
        "source_type",
        "source_id",
        "posting_fingerprint",
        "created_by",
        "posted_at",
        "cancelled_at",
    )
    inlines = [VoucherEntryInline]
    actions = [post_vouchers, cancel_vouchers]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("cash_bank_account")

    """ Computed column for balance check """

    def balanced(self, obj):
        d, c = obj.compute_totals()
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.00"),
            c or Decimal("0.00"),
        )

    balanced.short_description = "Debits / Credits"

    """ Make vouchers immutable once posted """

    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.status != "draft":
            r += ["voucher_type", "date", "narration", "cash_bank_account"]
        return r

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_delete_permission(request, obj)

    def save_model(self, request, obj, form, change):
        # new drafts take the next number for their type
        if not obj.voucher_number:
            from ledger_core.services.vouchers import next_voucher_number

            obj.voucher_number = next_voucher_number(obj.voucher_type)
            obj.created_by = str(request.user)
        super().save_model(request, obj, form, change)


@admin.register(NumberSequence)
class NumberSequenceAdmin(admin.ModelAdmin):
    list_display = ("key", "last_value")
    readonly_fields = ("key", "last_value")

    def has_add_permission(self, request):
        return False
