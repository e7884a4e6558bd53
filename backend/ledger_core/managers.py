from django.db import models

# -----------------------------------------
# Query helpers shared by the ledger models
# -----------------------------------------


class AccountQuerySet(models.QuerySet):
    def active(self):
        # Inactive accounts keep their history but take no new postings
        return self.filter(status="Active")

    def with_role(self, role):
        return self.filter(role=role)

    def in_subgroup(self, subgroup_code):
        return self.filter(subgroup__code=subgroup_code)

    def with_hierarchy(self):
        # account -> subgroup -> main group in one query
        return self.select_related("subgroup", "subgroup__main_group")


class AccountManager(models.Manager):
    def get_queryset(self):
        return AccountQuerySet(self.model, using=self._db)

    def active(self):
        return self.get_queryset().active()

    def with_role(self, role):
        return self.get_queryset().with_role(role)

    def in_subgroup(self, subgroup_code):
        return self.get_queryset().in_subgroup(subgroup_code)

    def with_hierarchy(self):
        return self.get_queryset().with_hierarchy()

    # Account.objects.active().with_role("inventory").first()


class VoucherQuerySet(models.QuerySet):
    def as_of(self, as_of_date):
        # everything dated on or before the cutoff
        return self.filter(date__lte=as_of_date)

    def of_type(self, voucher_type):
        return self.filter(voucher_type=voucher_type)

    def for_source(self, source_type, source_id):
        # vouchers generated by one business document
        return self.filter(source_type=source_type, source_id=source_id)


class VoucherManager(models.Manager):
    def get_queryset(self):
        return VoucherQuerySet(self.model, using=self._db)

    def of_type(self, voucher_type):
        return self.get_queryset().of_type(voucher_type)

    def for_source(self, source_type, source_id):
        return self.get_queryset().for_source(source_type, source_id)


class VoucherEntryQuerySet(models.QuerySet):
    def posted_as_of(self, as_of_date):
        """Entries that count towards balances at `as_of_date`:
        posted vouchers only (drafts and cancelled ones are ignored)."""
        return self.filter(
            voucher__status="posted",
            voucher__date__lte=as_of_date,
        )

    def posted(self):
        return self.filter(voucher__status="posted")


class VoucherEntryManager(models.Manager):
    def get_queryset(self):
        return VoucherEntryQuerySet(self.model, using=self._db)

    def posted(self):
        return self.get_queryset().posted()

    def posted_as_of(self, as_of_date):
        return self.get_queryset().posted_as_of(as_of_date)
