import logging
from celery import shared_task
from django.db import models, transaction

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_account_balances():
    """
    Rebuild every running balance from scratch:
    current_balance = opening_balance + posted movements on the normal side.
    Returns the codes of the accounts whose stored balance had drifted.
    """
    # import models lazily to avoid circular imports at module import time
    from .models import Account, VoucherEntry

    corrected = []
    with transaction.atomic():
        # Sum posted debits and credits per account in one query
        movements = {
            row["account_id"]: (row["dr"] or 0, row["cr"] or 0)
            for row in VoucherEntry.objects.posted()
            .values("account_id")
            .annotate(dr=models.Sum("debit"), cr=models.Sum("credit"))
        }
        accounts = Account.objects.select_for_update(of=("self",)).select_related(
            "subgroup__main_group"
        )
        for account in accounts:
            debit, credit = movements.get(account.pk, (0, 0))
            balance = account.opening_balance + account.signed_movement(debit, credit)
            if balance != account.current_balance:
                corrected.append(account.code)
                logger.warning(
                    "Account %s balance drifted: stored=%s computed=%s",
                    account.code,
                    account.current_balance,
                    balance,
                )
                Account.objects.filter(pk=account.pk).update(current_balance=balance)

    logger.info("Recomputed balances, %s account(s) corrected", len(corrected))
    return corrected
