from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Account, SalesInvoice, Subgroup, Voucher

"""
Instance deletes are refused by each model's delete() before Django opens
its delete transaction. queryset.delete() skips Model.delete() and only
announces each row through pre_delete, so the same checks run here too.
"""


# pre_delete fires just before Django deletes the instance
@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_entries(sender, instance, **kwargs):
    instance.check_deletable()


@receiver(pre_delete, sender=Subgroup)
def prevent_delete_protected_subgroup(sender, instance, **kwargs):
    instance.check_deletable()


@receiver(pre_delete, sender=Voucher)
def prevent_delete_posted_voucher(sender, instance, **kwargs):
    instance.check_deletable()


@receiver(pre_delete, sender=SalesInvoice)
def prevent_delete_approved_invoice(sender, instance, **kwargs):
    instance.check_deletable()
