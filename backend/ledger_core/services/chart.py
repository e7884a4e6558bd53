import logging
from decimal import Decimal
from django.conf import settings
from django.db import transaction

from ..exceptions import AccountNotFoundError
from ..models import Account, MainGroup, Subgroup

logger = logging.getLogger(__name__)

# ---------------------------------------------
# Default chart of accounts (seeded at setup)
# ---------------------------------------------
# (code, name, kind)
DEFAULT_MAIN_GROUPS = [
    ("1", "Current Assets", "asset"),
    ("2", "Long Term Assets", "asset"),
    ("3", "Current Liabilities", "liability"),
    ("4", "Long Term Liabilities", "liability"),
    ("5", "Capital", "capital"),
    ("6", "Drawings", "drawings"),
    ("7", "Revenues", "revenue"),
    ("8", "Expenses", "expense"),
    ("9", "Cost", "cost"),
]

# (code, name, main group code)
DEFAULT_SUBGROUPS = [
    ("101", "Inventory", "1"),
    ("102", "Cash", "1"),
    ("103", "Bank", "1"),
    ("104", "Sales Customer Receivables", "1"),
    ("301", "Purchase Orders Payables", "3"),
    ("302", "Purchase expenses Payables", "3"),
    ("303", "Other Payables", "3"),
    ("401", "Tax Payables", "4"),
    ("501", "Owner Equity", "5"),
    ("701", "Goods Revenue", "7"),
    ("801", "Purchase Expenses", "8"),
    ("901", "Goods Purchased Cost", "9"),
]

# (code, name, role) - role tags are what posting looks accounts up by
DEFAULT_ACCOUNTS = [
    ("101001", "Inventory", "inventory"),
    ("102001", "Cash in Hand", "cash_bank"),
    # bank sits in its own subgroup, so bank payments credit a 103 account
    ("103001", "Bank Account", "cash_bank"),
    ("104001", "Trade Receivables", "receivable"),
    ("301001", "Trade Payables", "payable"),
    ("302001", "Freight Payable", "expense_payable"),
    ("401001", "GST", ""),
    ("401002", "Purchase Tax Payable", ""),
    ("501003", "OWNER CAPITAL", ""),
    ("701001", "Goods Sold", "revenue"),
    ("701002", "Goods Sold (Discounts)", ""),
    ("801002", "Purchase Tax Expense", ""),
    ("801014", "Dispose Inventory", ""),
    ("901001", "Cost Inventory", "cogs"),
    ("901002", "Cost Inventory (Discounts)", ""),
]


# ----------------------------
# Read-only lookups
# ----------------------------
def find_account_by_code(code):
    account = Account.objects.with_hierarchy().filter(code=code).first()
    if account is None:
        raise AccountNotFoundError("code", f"No account with code {code}")
    return account


def find_accounts_by_subgroup(subgroup_code):
    return Account.objects.in_subgroup(subgroup_code).order_by("code")


def get_subgroups_by_main_group(main_group_code):
    return Subgroup.objects.filter(main_group__code=main_group_code).order_by("code")


def resolve_account(role, hint=None):
    """First Active account tagged with `role`, lowest code wins.

    Inactive accounts are skipped here (closed to new postings) even though
    reports still roll them up.
    """
    account = Account.objects.active().with_role(role).order_by("code").first()
    if account is None:
        raise AccountNotFoundError(role, hint)
    return account


# ----------------------------
# Opening accounts
# ----------------------------
def next_account_code(subgroup):
    """<subgroup code><max 3-digit sequence + 1>, e.g. 301001 -> 301002"""
    prefix = subgroup.code
    highest = 0
    for code in Account.objects.filter(subgroup=subgroup).values_list("code", flat=True):
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


def open_account(
    subgroup,
    name,
    role="",
    account_type="regular",
    opening_balance=Decimal("0.00"),
    description=None,
    can_delete=True,
):
    with transaction.atomic():
        # serialize code assignment within one subgroup
        subgroup = Subgroup.objects.select_for_update().get(pk=subgroup.pk)
        account = Account.objects.create(
            subgroup=subgroup,
            code=next_account_code(subgroup),
            name=name,
            description=description,
            role=role,
            account_type=account_type,
            opening_balance=opening_balance,
            current_balance=opening_balance,
            can_delete=can_delete,
        )
    logger.info("Opened account %s under subgroup %s", account, subgroup.code)
    return account


def _party_subgroup(code, role):
    subgroup = Subgroup.objects.filter(code=code).first()
    if subgroup is None:
        raise AccountNotFoundError(role, f"Subgroup {code} is missing from the chart")
    return subgroup


def open_supplier_account(supplier):
    """Payable ledger for a supplier (subgroup 301 by default)."""
    if supplier.payable_account_id:
        return supplier.payable_account
    subgroup = _party_subgroup(settings.LEDGER_SUPPLIER_SUBGROUP, "payable")
    account = open_account(
        subgroup,
        supplier.display_name,
        account_type="person",
        opening_balance=supplier.opening_balance,
        can_delete=False,
    )
    supplier.payable_account = account
    supplier.save()
    return account


def open_customer_account(customer):
    """Receivable ledger for a customer (subgroup 104 by default)."""
    if customer.receivable_account_id:
        return customer.receivable_account
    subgroup = _party_subgroup(settings.LEDGER_CUSTOMER_SUBGROUP, "receivable")
    account = open_account(
        subgroup,
        customer.name,
        account_type="person",
        opening_balance=customer.opening_balance,
        can_delete=False,
    )
    customer.receivable_account = account
    customer.save()
    return account


# ----------------------------
# Seeding
# ----------------------------
@transaction.atomic
def seed_chart_of_accounts():
    """Create the default groups and accounts. Existing rows are left alone,
    so running it twice is harmless."""
    created = {"main_groups": 0, "subgroups": 0, "accounts": 0}

    groups = {}
    for order, (code, name, kind) in enumerate(DEFAULT_MAIN_GROUPS, start=1):
        group, was_created = MainGroup.objects.get_or_create(
            code=code,
            defaults={"name": name, "kind": kind, "display_order": order},
        )
        groups[code] = group
        created["main_groups"] += int(was_created)

    subgroups = {}
    for code, name, group_code in DEFAULT_SUBGROUPS:
        subgroup, was_created = Subgroup.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "main_group": groups[group_code],
                "can_delete": False,
            },
        )
        subgroups[code] = subgroup
        created["subgroups"] += int(was_created)

    for code, name, role in DEFAULT_ACCOUNTS:
        _, was_created = Account.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "subgroup": subgroups[code[:3]],
                "role": role,
                "can_delete": False,
            },
        )
        created["accounts"] += int(was_created)

    logger.info(
        "Chart of accounts seeded: %(main_groups)s main groups, "
        "%(subgroups)s subgroups, %(accounts)s accounts created",
        created,
    )
    return created
