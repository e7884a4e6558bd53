from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from ledger_core.exceptions import LedgerError
from ledger_core.services.sales import approve_sales_invoice
from ledger_core.services.vouchers import cancel_voucher, post_voucher

# ---------- Admin actions ----------


def _run_each(modeladmin, request, queryset, label, func):
    """
    Apply `func` to each selected object in its own transaction,
    so one failure doesn't stop the batch. Reports via admin messages.
    """
    total = queryset.count()
    success = 0
    failures = 0
    for obj in queryset:
        try:
            func(obj)
            success += 1
        except (LedgerError, ValidationError) as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not %(label)s %(obj)s: %(err)s") % {"label": label, "obj": obj, "err": exc},
                level=messages.ERROR,
            )

    # Final summary message
    modeladmin.message_user(
        request,
        _("%(label)s: %(success)d of %(total)d done. %(failures)d failed.") % {
            "label": label.capitalize(),
            "success": success,
            "total": total,
            "failures": failures,
        },
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


@admin.action(description=_("Post selected vouchers (make immutable)"))
def post_vouchers(modeladmin, request, queryset):
    user = str(request.user)
    _run_each(
        modeladmin,
        request,
        queryset.filter(status="draft"),
        "post",
        lambda v: post_voucher(v.pk, user=user),
    )


@admin.action(description=_("Cancel selected vouchers"))
def cancel_vouchers(modeladmin, request, queryset):
    user = str(request.user)
    _run_each(
        modeladmin,
        request,
        queryset.filter(status="posted"),
        "cancel",
        lambda v: cancel_voucher(v.pk, user=user),
    )


""" Approving books revenue, receipts and COGS """


@admin.action(description=_("Approve selected invoices"))
def approve_invoices(modeladmin, request, queryset):
    user = str(request.user)
    _run_each(
        modeladmin,
        request,
        queryset.filter(status="draft"),
        "approve",
        lambda inv: approve_sales_invoice(inv.pk, approved_by=user),
    )
