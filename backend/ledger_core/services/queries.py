from django.core.exceptions import ValidationError
from django.core.paginator import EmptyPage, Paginator
from django.db.models import Q

from ..models import VOUCHER_PREFIXES, Voucher
from .reports import parse_as_of_date

# Numeric type filters used by the voucher screens
TYPE_ALIASES = {"1": "payment", "2": "receipt", "3": "journal", "4": "contra"}
# Prefix filters (JV, PV, ...) resolve to the same types
TYPE_ALIASES.update({prefix: vtype for vtype, prefix in VOUCHER_PREFIXES.items()})


def _voucher_type(value):
    vtype = TYPE_ALIASES.get(str(value).upper(), str(value).lower())
    if vtype not in VOUCHER_PREFIXES:
        raise ValidationError(f"Unknown voucher type: {value}")
    return vtype


def serialize_voucher(voucher):
    cash_bank = voucher.cash_bank_account
    return {
        "id": voucher.pk,
        "voucherNumber": voucher.voucher_number,
        "type": voucher.voucher_type,
        "date": voucher.date,
        "narration": voucher.narration,
        "cashBankAccount": str(cash_bank) if cash_bank else None,
        "status": voucher.status,
        "totalDebit": voucher.total_debit,
        "totalCredit": voucher.total_credit,
        "entries": [
            {
                "account": str(entry.account),  # "101001-Inventory"
                "accountCode": entry.account.code,
                "description": entry.description,
                "debit": entry.debit,
                "credit": entry.credit,
            }
            for entry in voucher.entries.all()
        ],
    }


def _with_entries(queryset):
    return queryset.select_related("cash_bank_account").prefetch_related(
        "entries__account"
    )


def get_voucher_by_number(voucher_number):
    return _with_entries(Voucher.objects.filter(voucher_number=voucher_number)).first()


def search_vouchers(
    search=None,
    voucher_type=None,
    status=None,
    from_date=None,
    to_date=None,
    page=1,
    limit=20,
):
    """Voucher list with entries embedded, newest first."""
    vouchers = Voucher.objects.all()
    if search:
        # number, narration or any entry description
        vouchers = vouchers.filter(
            Q(voucher_number__icontains=search)
            | Q(narration__icontains=search)
            | Q(entries__description__icontains=search)
        ).distinct()
    if voucher_type:
        vouchers = vouchers.of_type(_voucher_type(voucher_type))
    if status:
        vouchers = vouchers.filter(status=status)
    if from_date:
        vouchers = vouchers.filter(date__gte=parse_as_of_date(from_date))
    if to_date:
        vouchers = vouchers.as_of(parse_as_of_date(to_date))

    try:
        page, limit = int(page), int(limit)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be >= 1")

    paginator = Paginator(_with_entries(vouchers.order_by("-date", "-id")), limit)
    try:
        items = paginator.page(page).object_list
    except EmptyPage:
        items = []
    return {
        "data": [serialize_voucher(v) for v in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": paginator.count,
            "pages": paginator.num_pages,
        },
    }
