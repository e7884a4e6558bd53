import logging
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.http import Http404, JsonResponse
from django.views.decorators.http import require_GET

from .exceptions import LedgerError
from .services.queries import get_voucher_by_number, search_vouchers, serialize_voucher
from .services.reports import (compute_balance_sheet, compute_general_ledger,
                               compute_income_statement, compute_trial_balance)

logger = logging.getLogger(__name__)


def _json(payload, status=200):
    # DjangoJSONEncoder renders Decimal and date values
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def _error(exc):
    # surface the specific reason (missing account, bad date, ...)
    message = "; ".join(exc.messages) if isinstance(exc, ValidationError) else str(exc)
    logger.info("Rejected request: %s", message)
    return _json({"ok": False, "error": message}, status=400)


@require_GET
def health_view(request):
    return _json({"status": "ok"})


@require_GET
def voucher_list_view(request):
    params = request.GET
    try:
        result = search_vouchers(
            search=params.get("search"),
            voucher_type=params.get("type"),
            status=params.get("status"),
            from_date=params.get("from_date"),
            to_date=params.get("to_date"),
            page=params.get("page", 1),
            limit=params.get("limit", 20),
        )
    except (LedgerError, ValidationError) as e:
        return _error(e)
    return _json(result)


@require_GET
def voucher_detail_view(request, voucher_number):
    voucher = get_voucher_by_number(voucher_number)
    if voucher is None:
        raise Http404(f"Voucher {voucher_number} not found")
    return _json({"data": serialize_voucher(voucher)})


def _report_view(compute):
    @require_GET
    def view(request):
        try:
            report = compute(request.GET.get("date"))
        except (LedgerError, ValidationError) as e:
            return _error(e)
        return _json({"data": report})

    return view


balance_sheet_view = _report_view(compute_balance_sheet)
trial_balance_view = _report_view(compute_trial_balance)
income_statement_view = _report_view(compute_income_statement)


@require_GET
def general_ledger_view(request):
    params = request.GET
    try:
        report = compute_general_ledger(
            account_code=params.get("account"),
            account_type=params.get("type"),
            from_date=params.get("from_date"),
            to_date=params.get("to_date") or params.get("date"),
        )
    except (LedgerError, ValidationError) as e:
        return _error(e)
    return _json({"data": report})
