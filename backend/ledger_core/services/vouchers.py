import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import InvalidAmountError, UnbalancedEntryError
from ..models import VOUCHER_PREFIXES, NumberSequence, Voucher, VoucherEntry

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Two totals closer than this are considered equal
EPSILON = Decimal("0.01")


# ----------------------------
# Money helpers
# ----------------------------
def round2(value):
    """Round to 2 dp, half away from zero. Accepts Decimal, int, float or str."""
    if value is None or value == "":
        return Decimal("0.00")
    try:
        # str() first so floats don't drag their binary noise along
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(f"Not a valid amount: {value!r}")


def is_balanced(total_debit, total_credit):
    return abs(round2(total_debit) - round2(total_credit)) < EPSILON


def whole_quantity(value):
    qty = round2(value)
    if qty <= 0 or qty != qty.to_integral_value():
        raise InvalidAmountError(f"Quantity must be a whole number > 0, got {value!r}")
    return int(qty)


# ----------------------------
# Numbering
# ----------------------------
def next_voucher_number(voucher_type):
    """JV0001, PV0001, ... taken from a locked per-type counter."""
    try:
        prefix = VOUCHER_PREFIXES[voucher_type]
    except KeyError:
        raise ValidationError(f"Unknown voucher type: {voucher_type}")
    value = NumberSequence.next_value(f"voucher:{voucher_type}")
    return f"{prefix}{value:0{settings.LEDGER_VOUCHER_NUMBER_WIDTH}d}"


# ----------------------------
# Voucher workflows
# ----------------------------
def _prepare_lines(lines):
    """Round amounts and reject bad lines before anything touches the DB."""
    prepared = []
    for line in lines:
        debit = round2(line.get("debit"))
        credit = round2(line.get("credit"))
        if debit < 0 or credit < 0:
            raise InvalidAmountError("Debit and credit must be >= 0")
        if debit > 0 and credit > 0:
            raise InvalidAmountError(
                "A voucher line cannot carry both a debit and a credit"
            )
        prepared.append(
            {
                "account": line["account"],
                "description": line.get("description") or "",
                "debit": debit,
                "credit": credit,
            }
        )
    return prepared


def create_voucher(
    voucher_type,
    date,
    narration,
    lines,
    cash_bank_account=None,
    source_type=None,
    source_id=None,
    created_by=None,
    post=True,
):
    """
    Create a voucher with its entries and (by default) post it.

    `lines` is a list of dicts: {"account", "debit", "credit", "description"}.
    Totals are checked before the header is written, so an unbalanced
    voucher never reaches the database.
    """
    if voucher_type not in VOUCHER_PREFIXES:
        raise ValidationError(f"Unknown voucher type: {voucher_type}")
    if not lines:
        raise ValidationError("Voucher must have at least one entry.")

    prepared = _prepare_lines(lines)
    total_debit = sum((line["debit"] for line in prepared), Decimal("0.00"))
    total_credit = sum((line["credit"] for line in prepared), Decimal("0.00"))
    if not is_balanced(total_debit, total_credit):
        logger.warning(
            "Rejected unbalanced %s voucher (%s): debit=%s credit=%s",
            voucher_type,
            narration,
            total_debit,
            total_credit,
        )
        raise UnbalancedEntryError(total_debit, total_credit)

    with transaction.atomic():
        voucher = Voucher.objects.create(
            voucher_number=next_voucher_number(voucher_type),
            voucher_type=voucher_type,
            date=date,
            narration=narration,
            cash_bank_account=cash_bank_account,
            status="draft",
            total_debit=total_debit,
            total_credit=total_credit,
            source_type=source_type,
            source_id=source_id,
            created_by=created_by,
        )
        for order, line in enumerate(prepared, start=1):
            VoucherEntry.objects.create(
                voucher=voucher,
                account=line["account"],
                description=line["description"],
                debit=line["debit"],
                credit=line["credit"],
                sort_order=order,
            )
        if post:
            voucher.post(user=created_by)

    logger.info(
        "Voucher %s (%s) %s: debit=%s credit=%s",
        voucher.voucher_number,
        voucher_type,
        voucher.status,
        total_debit,
        total_credit,
    )
    return voucher


def post_voucher(voucher_id, user=None):
    """Post a draft voucher. Safe to call again on an unchanged posted one."""
    with transaction.atomic():
        voucher = Voucher.objects.select_for_update().get(pk=voucher_id)
        voucher.post(user=user)
    logger.info("Posted voucher %s", voucher.voucher_number)
    return voucher


def cancel_voucher(voucher_id, user=None):
    with transaction.atomic():
        voucher = Voucher.objects.select_for_update().get(pk=voucher_id)
        voucher.transition_to("cancelled", user=user)
    logger.info("Cancelled voucher %s", voucher.voucher_number)
    return voucher
