import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from ..exceptions import InvalidDateError
from ..models import Account, MainGroup, VoucherEntry
from ..models.chart import MAIN_GROUP_KINDS
from .vouchers import EPSILON, round2

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Accepted "as of" formats: 2025-01-31, 31/01/25, 31/01/2025
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%y", "%d/%m/%Y")


def parse_as_of_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise InvalidDateError(f"Invalid date: {value!r} (use YYYY-MM-DD or DD/MM/YY)")


def _resolve_date(value):
    return timezone.localdate() if value in (None, "") else parse_as_of_date(value)


# ----------------------------
# Building blocks
# ----------------------------
def _movements(as_of, from_date=None):
    """{account_id: (debits, credits)} over posted vouchers dated <= as_of."""
    entries = VoucherEntry.objects.posted_as_of(as_of)
    if from_date is not None:
        entries = entries.filter(voucher__date__gte=from_date)
    rows = entries.values("account_id").annotate(
        dr=models.Sum("debit"), cr=models.Sum("credit")
    )
    return {row["account_id"]: (row["dr"] or ZERO, row["cr"] or ZERO) for row in rows}


def _load_groups(kinds=None):
    # empty subgroups and groups stay in the tree with a zero total
    groups = MainGroup.objects.order_by("display_order", "code")
    if kinds is not None:
        groups = groups.filter(kind__in=kinds)
    return list(groups.prefetch_related("subgroups__accounts"))


def _group_node(group, movements, with_opening=True):
    """Main group -> subgroups -> accounts, each level carrying its total.
    Balances are signed on the group's normal side."""
    debit_normal = group.normal_balance == "debit"
    subgroups = []
    for subgroup in sorted(group.subgroups.all(), key=lambda s: s.code):
        accounts = []
        for account in sorted(subgroup.accounts.all(), key=lambda a: a.code):
            dr, cr = movements.get(account.pk, (ZERO, ZERO))
            balance = (dr - cr) if debit_normal else (cr - dr)
            if with_opening:
                balance += account.opening_balance
            # Inactive accounts still carry history, so they stay in the rollup
            accounts.append(
                {
                    "id": account.pk,
                    "code": account.code,
                    "name": account.name,
                    "status": account.status,
                    "balance": round2(balance),
                }
            )
        subgroups.append(
            {
                "code": subgroup.code,
                "name": subgroup.name,
                "total": sum((a["balance"] for a in accounts), ZERO),
                "accounts": accounts,
            }
        )
    return {
        "code": group.code,
        "name": group.name,
        "kind": group.kind,
        "normal_balance": group.normal_balance,
        "total": sum((s["total"] for s in subgroups), ZERO),
        "subgroups": subgroups,
    }


def _kind_total(nodes, kind):
    return sum((n["total"] for n in nodes if n["kind"] == kind), ZERO)


def _income_totals(nodes):
    revenue = _kind_total(nodes, "revenue")
    expenses = _kind_total(nodes, "expense")
    cost = _kind_total(nodes, "cost")
    return {
        "revenue": revenue,
        "expenses": expenses,
        "cost": cost,
        "net_income": revenue - expenses - cost,
    }


# ----------------------------
# Reports
# ----------------------------
def compute_balance_sheet(as_of=None):
    """
    Financial position as of a date:
    - account balance = opening + posted movements dated <= as_of
    - subgroup total = sum(accounts), main group total = sum(subgroups)
    - net income is the plug: assets - liabilities - (capital + drawings)
    The plug is cross-checked against revenue - expenses - cost; a gap
    is reported, never raised.
    """
    as_of = _resolve_date(as_of)

    # one transaction so balances and hierarchy come from the same state
    with transaction.atomic():
        movements = _movements(as_of)
        groups = _load_groups()

    nodes = [_group_node(g, movements) for g in groups]
    sections = {"assets": [], "liabilities": [], "capital": []}
    for group, node in zip(groups, nodes):
        section = group.balance_sheet_section
        if section:
            sections[section].append(node)

    total_assets = _kind_total(nodes, "asset")
    total_liabilities = _kind_total(nodes, "liability")
    capital = _kind_total(nodes, "capital")
    drawings = _kind_total(nodes, "drawings")
    net_income = total_assets - total_liabilities - (capital + drawings)
    total_capital = capital + drawings + net_income

    difference = abs(total_assets - (total_liabilities + total_capital))
    is_balanced = difference < EPSILON

    income_net = _income_totals(nodes)["net_income"]
    net_income_difference = net_income - income_net
    net_income_consistent = abs(net_income_difference) < EPSILON
    if not net_income_consistent:
        logger.warning(
            "Balance sheet %s: net income plug %s differs from income statement %s by %s",
            as_of,
            net_income,
            income_net,
            net_income_difference,
        )

    return {
        "as_of": as_of,
        "assets": sections["assets"],
        "liabilities": sections["liabilities"],
        "capital": sections["capital"],
        "totals": {
            "assets": total_assets,
            "liabilities": total_liabilities,
            "capital": capital,
            "drawings": drawings,
            "net_income": net_income,
            "total_capital": total_capital,
        },
        "is_balanced": is_balanced,
        "difference": difference,
        "income_statement_net_income": income_net,
        "net_income_difference": net_income_difference,
        "net_income_consistent": net_income_consistent,
    }


def compute_income_statement(as_of=None, from_date=None):
    """Revenue - expenses - cost. With `from_date` only movements in the
    window count and opening balances are left out."""
    as_of = _resolve_date(as_of)
    from_date = parse_as_of_date(from_date) if from_date else None

    with transaction.atomic():
        movements = _movements(as_of, from_date)
        groups = _load_groups(("revenue", "expense", "cost"))

    nodes = [_group_node(g, movements, with_opening=from_date is None) for g in groups]
    return {
        "as_of": as_of,
        "from_date": from_date,
        "revenue": [n for n in nodes if n["kind"] == "revenue"],
        "expenses": [n for n in nodes if n["kind"] == "expense"],
        "cost": [n for n in nodes if n["kind"] == "cost"],
        "totals": _income_totals(nodes),
    }


def compute_trial_balance(as_of=None):
    """Every account with its balance in the debit or credit column."""
    as_of = _resolve_date(as_of)

    with transaction.atomic():
        movements = _movements(as_of)
        groups = _load_groups()

    rows = []
    for group in groups:
        node = _group_node(group, movements)
        debit_normal = node["normal_balance"] == "debit"
        for subgroup in node["subgroups"]:
            for account in subgroup["accounts"]:
                balance = account["balance"]
                # a negative balance sits on the opposite column
                on_debit = (balance >= 0) == debit_normal
                rows.append(
                    {
                        "code": account["code"],
                        "name": account["name"],
                        "main_group": group.code,
                        "subgroup": subgroup["code"],
                        "debit": abs(balance) if on_debit else ZERO,
                        "credit": ZERO if on_debit else abs(balance),
                    }
                )
    rows.sort(key=lambda r: r["code"])

    total_debit = sum((r["debit"] for r in rows), ZERO)
    total_credit = sum((r["credit"] for r in rows), ZERO)
    return {
        "as_of": as_of,
        "rows": rows,
        "totals": {"debit": total_debit, "credit": total_credit},
        "is_balanced": abs(total_debit - total_credit) < EPSILON,
        "difference": abs(total_debit - total_credit),
    }


def compute_general_ledger(account_code=None, account_type=None, from_date=None, to_date=None):
    """
    Posted movements per account, oldest first, each with the running
    balance on the account's normal side.

    The window opens with the account's opening balance plus everything
    posted before `from_date`, so the last balance always equals the
    balance as of `to_date`.
    """
    to_date = _resolve_date(to_date)
    from_date = parse_as_of_date(from_date) if from_date else None

    accounts = Account.objects.with_hierarchy().order_by("code")
    if account_code:
        accounts = accounts.filter(code__icontains=account_code)
    if account_type:
        kind = str(account_type).lower()
        if kind not in dict(MAIN_GROUP_KINDS):
            raise ValidationError(f"Unknown account type: {account_type}")
        accounts = accounts.filter(subgroup__main_group__kind=kind)

    with transaction.atomic():
        accounts = list(accounts)
        ids = [a.pk for a in accounts]
        before = _movements(from_date - timedelta(days=1)) if from_date else {}
        entries = (
            VoucherEntry.objects.posted_as_of(to_date)
            .filter(account_id__in=ids)
            .select_related("voucher")
            .order_by("voucher__date", "voucher_id", "sort_order", "id")
        )
        if from_date:
            entries = entries.filter(voucher__date__gte=from_date)
        by_account = {}
        for entry in entries:
            by_account.setdefault(entry.account_id, []).append(entry)

    ledger = []
    for account in accounts:
        dr, cr = before.get(account.pk, (ZERO, ZERO))
        opening = round2(account.opening_balance + account.signed_movement(dr, cr))
        balance = opening
        total_debit = total_credit = ZERO
        transactions = []
        for entry in by_account.get(account.pk, []):
            voucher = entry.voucher
            balance += account.signed_movement(entry.debit, entry.credit)
            total_debit += entry.debit
            total_credit += entry.credit
            transactions.append(
                {
                    "date": voucher.date,
                    "voucherNumber": voucher.voucher_number,
                    "type": voucher.voucher_type,
                    "reference": voucher.narration or "",
                    "description": entry.description or voucher.narration or "",
                    "debit": entry.debit,
                    "credit": entry.credit,
                    "balance": round2(balance),
                }
            )
        ledger.append(
            {
                "code": account.code,
                "name": account.name,
                "type": account.main_group.kind,
                "status": account.status,
                "opening_balance": opening,
                "total_debit": total_debit,
                "total_credit": total_credit,
                "closing_balance": round2(balance),
                "transactions": transactions,
            }
        )

    return {"from_date": from_date, "to_date": to_date, "accounts": ledger}
