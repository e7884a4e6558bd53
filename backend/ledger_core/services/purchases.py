import logging
from decimal import Decimal
from django.db import transaction

from ..exceptions import InvalidAmountError
from ..models import (DirectPurchaseOrder, DirectPurchaseOrderExpense,
                      DirectPurchaseOrderItem, NumberSequence, Voucher)
from .chart import open_supplier_account, resolve_account
from .posting import post_payment, post_purchase
from .vouchers import round2, whole_quantity

logger = logging.getLogger(__name__)


def next_dpo_number():
    return f"DPO-{NumberSequence.next_value('dpo'):04d}"


def create_direct_purchase_order(
    supplier,
    date,
    items,
    expenses=(),
    store=None,
    description=None,
    payment_account=None,
    created_by=None,
):
    """
    Record a direct purchase and book it, all or nothing.

    items:    [{"part", "quantity", "purchase_price", "remarks"}]
    expenses: [{"expense_type", "payable_account", "description", "amount"}]

    If `payment_account` is given the items total is paid straight away
    with a payment voucher.
    """
    if not items:
        raise InvalidAmountError("A direct purchase order needs at least one item")

    # validate everything before writing anything
    rows = []
    for item in items:
        qty = whole_quantity(item.get("quantity"))
        price = round2(item.get("purchase_price"))
        if price < 0:
            raise InvalidAmountError(f"Purchase price cannot be negative (part {item['part']})")
        rows.append((item, qty, price, round2(qty * price)))

    charges = []
    for expense in expenses:
        label = expense.get("expense_type") or "Expense"
        amount = round2(expense.get("amount"))
        if amount < 0:
            raise InvalidAmountError(f"{label} amount cannot be negative")
        # no account chosen: fall back to the chart's expense payable
        payable = expense.get("payable_account") or resolve_account(
            "expense_payable", f"No payable account for {label} (302001 is not set up)"
        )
        charges.append((expense, label, payable, amount))

    items_total = sum((amount for *_, amount in rows), Decimal("0.00"))
    total = items_total + sum((amount for *_, amount in charges), Decimal("0.00"))
    if items_total <= 0 or total <= 0:
        raise InvalidAmountError("Purchase total must be > 0")

    with transaction.atomic():
        open_supplier_account(supplier)
        dpo = DirectPurchaseOrder.objects.create(
            dpo_no=next_dpo_number(),
            date=date,
            store=store,
            supplier=supplier,
            payment_account=payment_account,
            description=description,
            total_amount=total,
        )
        for item, qty, price, amount in rows:
            DirectPurchaseOrderItem.objects.create(
                dpo=dpo,
                part=item["part"],
                quantity=qty,
                purchase_price=price,
                amount=amount,
                remarks=item.get("remarks"),
            )
        for expense, label, payable, amount in charges:
            DirectPurchaseOrderExpense.objects.create(
                dpo=dpo,
                expense_type=label,
                payable_account=payable,
                description=expense.get("description"),
                amount=amount,
            )

        post_purchase(dpo, created_by=created_by)

        if payment_account is not None:
            post_payment(dpo, items_total, payment_account, date=date, created_by=created_by)
            dpo.paid_amount = items_total
            dpo.refresh_payment_status()
            dpo.save(update_fields=["paid_amount", "status"])

    logger.info("DPO %s created for %s, total=%s", dpo.dpo_no, supplier, total)
    return dpo


def pay_direct_purchase_order(dpo, amount, cash_bank_account, date=None, created_by=None):
    """Pay a supplier against a DPO; the payment is only kept if its voucher posts."""
    with transaction.atomic():
        dpo = DirectPurchaseOrder.objects.select_for_update().get(pk=dpo.pk)
        if round2(amount) > dpo.outstanding_amount:
            raise InvalidAmountError(
                f"Payment {round2(amount)} exceeds the {dpo.outstanding_amount} "
                f"still owed on DPO {dpo.dpo_no}"
            )
        voucher = post_payment(
            dpo, amount, cash_bank_account, date=date, created_by=created_by
        )
        dpo.paid_amount += voucher.total_debit
        dpo.refresh_payment_status()
        dpo.save(update_fields=["paid_amount", "status"])

    logger.info("DPO %s paid %s via %s", dpo.dpo_no, voucher.total_debit, cash_bank_account)
    return {
        "voucherNumber": voucher.voucher_number,
        "amount": voucher.total_debit,
        "supplier": dpo.supplier.display_name,
        "cashBankAccount": str(cash_bank_account),
    }


def serialize_dpo(dpo):
    payment = (
        Voucher.objects.for_source("dpo_payment", dpo.pk)
        .exclude(status="cancelled")
        .order_by("id")
        .first()
    )
    return {
        "id": dpo.pk,
        "dpo_no": dpo.dpo_no,
        "status": dpo.status,
        "total_amount": dpo.total_amount,
        "vouchers": {
            "jvNumber": dpo.journal_voucher.voucher_number if dpo.journal_voucher_id else None,
            "pvNumber": payment.voucher_number if payment else None,
        },
    }
