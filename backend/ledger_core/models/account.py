from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import AccountManager
from .chart import Subgroup

ACCOUNT_TYPES = [
    ("regular", "Regular"),
    ("person", "Person"),  # supplier / customer ledgers
]

ACCOUNT_STATUS = [
    ("Active", "Active"),
    ("Inactive", "Inactive"),
]

# What a posting rule needs an account for.
# Tagged once when the chart is set up, so posting never guesses by code.
ACCOUNT_ROLES = [
    ("", "None"),
    ("inventory", "Inventory"),
    ("payable", "Supplier payable"),
    ("receivable", "Customer receivable"),
    ("cash_bank", "Cash or bank"),
    ("revenue", "Sales revenue"),
    ("cogs", "Cost of goods sold"),
    ("expense_payable", "Purchase expense payable"),
]


class Account(models.Model):
    """
    Posting target in the Chart of Accounts.
    - code is <subgroup code><3-digit sequence>, e.g. 101001
    - normal balance side comes from the main group the subgroup rolls into
    - current_balance is the running balance, maintained by voucher posting
    """

    subgroup = models.ForeignKey(
        Subgroup,
        on_delete=models.PROTECT,  # can't delete a subgroup that has accounts
        related_name="accounts",
    )
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)  # "Inventory", "Cash in Hand"
    description = models.TextField(null=True, blank=True)

    account_type = models.CharField(
        max_length=10, choices=ACCOUNT_TYPES, default="regular"
    )
    role = models.CharField(
        max_length=20, choices=ACCOUNT_ROLES, default="", blank=True
    )

    # Opening balance is expressed on the account's normal side
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # "Inactive" = closed to new postings; history and balance stay
    status = models.CharField(
        max_length=10, choices=ACCOUNT_STATUS, default="Active"
    )
    # cleared as soon as a posted voucher references the account
    can_delete = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AccountManager()

    class Meta:
        ordering = ("code",)
        indexes = [
            models.Index(fields=["subgroup", "code"], name="account_subgroup_code_idx"),
            models.Index(fields=["role", "status"], name="account_role_status_idx"),
        ]

    def __str__(self):
        return f"{self.code}-{self.name}"  # Example: "101001-Inventory"

    @property
    def main_group(self):
        return self.subgroup.main_group

    @property
    def normal_balance(self):
        return self.main_group.normal_balance

    def signed_movement(self, debit, credit):
        """Balance change caused by a debit/credit pair on this account."""
        if self.normal_balance == "debit":
            return debit - credit
        return credit - debit

    def clean(self):
        # 101001 must live under subgroup 101
        if self.subgroup_id and not self.code.startswith(self.subgroup.code):
            raise ValidationError(
                f"Account code {self.code} must start with subgroup code "
                f"{self.subgroup.code}."
            )
        suffix = self.code[len(self.subgroup.code):] if self.subgroup_id else ""
        if not suffix.isdigit():
            raise ValidationError(
                "Account code must end with a numeric sequence after the subgroup code."
            )

    def save(self, *args, **kwargs):
        """Freeze code and subgroup once vouchers point at the account."""
        if self.pk:
            old = Account.objects.filter(pk=self.pk).first()
            moved = old and (
                old.code != self.code or old.subgroup_id != self.subgroup_id
            )
            if moved:
                from .voucher import VoucherEntry

                if VoucherEntry.objects.filter(account_id=self.pk).exists():
                    raise ValidationError(
                        "Cannot change code or subgroup of an account used in vouchers."
                    )
        self.full_clean()
        return super().save(*args, **kwargs)

    def check_deletable(self):
        """Used accounts and seeded ones stay in the chart."""
        from .voucher import VoucherEntry

        if VoucherEntry.objects.filter(account_id=self.pk).exists():
            raise ValidationError("Cannot delete account used in voucher entries.")
        if not self.can_delete:
            raise ValidationError(f"Account {self} is protected and cannot be deleted.")

    def delete(self, *args, **kwargs):
        # refuse before Django opens its delete transaction
        self.check_deletable()
        return super().delete(*args, **kwargs)
