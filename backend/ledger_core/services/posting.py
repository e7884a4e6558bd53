import logging
from decimal import Decimal
from django.db import transaction
from django.utils import timezone

from ..exceptions import AccountNotFoundError, InvalidAmountError, UnbalancedEntryError
from ..models import Voucher
from .chart import resolve_account
from .vouchers import create_voucher, is_balanced, round2

logger = logging.getLogger(__name__)

# ----------------------------
# Account resolution
# ----------------------------
def _supplier_account(supplier):
    # Prefer the supplier's own payable ledger, else the generic payable account
    if supplier.payable_account_id:
        return supplier.payable_account
    return resolve_account("payable", f"Supplier {supplier} has no payable account")


def _customer_account(invoice):
    customer = invoice.customer
    if customer and customer.receivable_account_id:
        return customer.receivable_account
    return resolve_account("receivable", "No receivable account for sales invoices")


def _require_cash_bank(account):
    if account is None:
        raise AccountNotFoundError("cash_bank", "Choose a cash or bank account")
    if account.role != "cash_bank":
        raise AccountNotFoundError(
            "cash_bank", f"Account {account} is not a cash or bank account"
        )
    return account


def _live_voucher(source_type, source_id):
    # cancelled vouchers don't count; the event may be booked again
    return (
        Voucher.objects.for_source(source_type, source_id)
        .exclude(status="cancelled")
        .order_by("id")
        .first()
    )


# ----------------------------
# Purchases
# ----------------------------
def _item_detail(item):
    part = item.part
    return (
        f"{part.part_no}/{part.brand or ''}/{part.description or ''}/, "
        f"Qty {item.quantity}, Rate {item.purchase_price}, Cost: {item.amount}"
    )


def post_purchase(dpo, created_by=None):
    """
    Journal voucher for a direct purchase:
      Debit: Inventory = items total
      Debit: Inventory / Credit: expense payable, per freight or other expense
      Credit: Supplier payable = items total
    Debits and credits both equal the DPO total (items + expenses).
    """
    existing = _live_voucher("dpo", dpo.pk)
    if existing:
        return existing

    items = list(dpo.items.select_related("part"))
    expenses = [e for e in dpo.expenses.select_related("payable_account") if e.amount]
    if not items:
        raise InvalidAmountError(f"DPO {dpo.dpo_no} has no items to post")
    for item in items:
        if item.quantity <= 0:
            raise InvalidAmountError(f"Quantity must be > 0 (part {item.part})")
        if item.purchase_price < 0:
            raise InvalidAmountError(f"Purchase price cannot be negative (part {item.part})")
    for expense in expenses:
        if expense.amount < 0:
            raise InvalidAmountError(f"{expense.expense_type} amount cannot be negative")

    items_total = sum((round2(i.amount) for i in items), Decimal("0.00"))
    if items_total <= 0:
        raise InvalidAmountError(f"DPO {dpo.dpo_no} total must be > 0")

    inventory = resolve_account("inventory", "Inventory account (101001) is not set up")
    supplier_account = _supplier_account(dpo.supplier)

    no = dpo.dpo_no
    supplier_name = dpo.supplier.display_name
    lines = [
        {
            "account": inventory,
            "debit": items_total,
            "description": f"DPO: {no} Inventory Added, "
            + "; ".join(_item_detail(i) for i in items),
        }
    ]
    for expense in expenses:
        desc = expense.description or ""
        lines.append(
            {
                "account": inventory,
                "debit": expense.amount,
                "description": f"DPO: {no} - {expense.expense_type}: {desc}",
            }
        )
        lines.append(
            {
                "account": expense.payable_account,
                "credit": expense.amount,
                "description": f"DPO: {no} - {expense.expense_type} Payable",
            }
        )
    lines.append(
        {
            "account": supplier_account,
            "credit": items_total,
            "description": f"DPO: {no} {supplier_name} Liability Created",
        }
    )

    # the voucher must carry exactly the DPO amount
    total_debit = sum((round2(line.get("debit")) for line in lines), Decimal("0.00"))
    if not is_balanced(total_debit, dpo.total_amount):
        raise UnbalancedEntryError(
            total_debit,
            dpo.total_amount,
            f"DPO {no} total {dpo.total_amount} does not match posted amount {total_debit}",
        )

    with transaction.atomic():
        voucher = create_voucher(
            "journal",
            dpo.date,
            supplier_name,
            lines,
            source_type="dpo",
            source_id=dpo.pk,
            created_by=created_by,
        )
        dpo.journal_voucher = voucher
        dpo.save(update_fields=["journal_voucher"])
    return voucher


def post_payment(dpo, amount, cash_bank_account, date=None, created_by=None):
    """
    Payment voucher against a DPO:
      Debit: Supplier payable = amount
      Credit: Cash/Bank = amount
    """
    amount = round2(amount)
    if amount <= 0:
        raise InvalidAmountError("Payment amount must be > 0")
    cash_bank_account = _require_cash_bank(cash_bank_account)
    supplier_account = _supplier_account(dpo.supplier)

    return create_voucher(
        "payment",
        date or timezone.localdate(),
        f"Payment for DPO {dpo.dpo_no}",
        [
            {
                "account": supplier_account,
                "debit": amount,
                "description": f"Payment for DPO {dpo.dpo_no}",
            },
            {
                "account": cash_bank_account,
                "credit": amount,
                "description": "Payment made",
            },
        ],
        cash_bank_account=cash_bank_account,
        source_type="dpo_payment",
        source_id=dpo.pk,
        created_by=created_by,
    )


# ----------------------------
# Sales
# ----------------------------
def _cogs_amount(invoice):
    total = Decimal("0.00")
    for item in invoice.items.select_related("part"):
        total += round2(item.part.cost_basis() * item.quantity)
    return total


@transaction.atomic
def post_sales_revenue(invoice, created_by=None):
    """
    Book an approved invoice as three independent vouchers:
      1. Revenue JV: Debit receivable / Credit revenue = grand total
      2. One receipt voucher per cash/bank amount collected at the counter
      3. COGS JV: Debit COGS / Credit Inventory = cost of the goods sold
    Running it again for the same invoice returns the vouchers already booked.
    """
    grand_total = round2(invoice.grand_total)
    if grand_total <= 0:
        raise InvalidAmountError(f"Invoice {invoice.invoice_no} total must be > 0")

    receipts = []
    for account, amount in (
        (invoice.cash_account, invoice.cash_amount),
        (invoice.bank_account, invoice.bank_amount),
    ):
        amount = round2(amount)
        if amount < 0:
            raise InvalidAmountError("Received amounts cannot be negative")
        if amount > 0:
            receipts.append((_require_cash_bank(account), amount))
    received = sum((amount for _, amount in receipts), Decimal("0.00"))
    if received > grand_total:
        raise InvalidAmountError(
            f"Received {received} exceeds invoice total {grand_total}"
        )

    # resolve every account before the first voucher is written
    receivable = _customer_account(invoice)
    revenue = resolve_account("revenue", "Sales revenue account (701001) is not set up")
    cogs_total = _cogs_amount(invoice)
    if cogs_total > 0:
        cogs = resolve_account("cogs", "COGS account (901001) is not set up")
        inventory = resolve_account("inventory", "Inventory account (101001) is not set up")

    no = invoice.invoice_no
    party = invoice.party_name
    result = {"revenue": None, "receipts": [], "cogs": None}

    result["revenue"] = _live_voucher("invoice_revenue", invoice.pk) or create_voucher(
        "journal",
        invoice.date,
        f"Sales revenue for INV {no}",
        [
            {
                "account": receivable,
                "debit": grand_total,
                "description": f"INV: {no} Receivable Created - {party}",
            },
            {
                "account": revenue,
                "credit": grand_total,
                "description": f"INV: {no} Sales Revenue - {party}",
            },
        ],
        source_type="invoice_revenue",
        source_id=invoice.pk,
        created_by=created_by,
    )

    booked = list(
        Voucher.objects.for_source("invoice_receipt", invoice.pk)
        .exclude(status="cancelled")
        .order_by("id")
    )
    if booked:
        result["receipts"] = booked
    else:
        for account, amount in receipts:
            result["receipts"].append(
                create_voucher(
                    "receipt",
                    invoice.date,
                    f"Receipt for INV {no}",
                    [
                        {
                            "account": account,
                            "debit": amount,
                            "description": f"Receipt for INV {no}",
                        },
                        {
                            "account": receivable,
                            "credit": amount,
                            "description": f"Receipt for INV {no}",
                        },
                    ],
                    cash_bank_account=account,
                    source_type="invoice_receipt",
                    source_id=invoice.pk,
                    created_by=created_by,
                )
            )

    if cogs_total <= 0:
        logger.warning("INV %s: no cost basis for sold parts, COGS not posted", no)
        return result

    result["cogs"] = _live_voucher("invoice_cogs", invoice.pk) or create_voucher(
        "journal",
        invoice.date,
        f"COGS for INV {no}",
        [
            {"account": cogs, "debit": cogs_total, "description": f"COGS for INV {no}"},
            {
                "account": inventory,
                "credit": cogs_total,
                "description": f"COGS for INV {no}",
            },
        ],
        source_type="invoice_cogs",
        source_id=invoice.pk,
        created_by=created_by,
    )
    return result
