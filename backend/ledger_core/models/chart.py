from django.core.exceptions import ValidationError
from django.db import models

# Choice Lists
MAIN_GROUP_KINDS = [
    # Balance sheet groups
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("capital", "Capital"),
    ("drawings", "Drawings"),
    # Income statement groups
    ("revenue", "Revenue"),
    ("expense", "Expense"),
    ("cost", "Cost"),
]

# Kinds whose balance normally grows on the debit side.
# Everything else (liability, capital, drawings, revenue) is credit-normal;
# drawings sits in the equity section and is signed like capital.
DEBIT_NORMAL_KINDS = ("asset", "expense", "cost")

# Which balance sheet section a main group rolls into
BALANCE_SHEET_SECTIONS = {
    "asset": "assets",
    "liability": "liabilities",
    "capital": "capital",
    "drawings": "capital",
}


# ---------- Chart of Accounts: top level ----------
class MainGroup(models.Model):
    """
    Top-level classification (1 Current Assets, 3 Current Liabilities,
    5 Capital, 7 Revenues, 9 Cost, ...). Created once at setup.
    """

    # single digit by convention; subgroup codes start with it
    code = models.CharField(max_length=8, unique=True)
    name = models.CharField(max_length=100)
    kind = models.CharField(max_length=10, choices=MAIN_GROUP_KINDS)
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("display_order", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"  # Example: "1 – Current Assets"

    @property
    def normal_balance(self):
        return "debit" if self.kind in DEBIT_NORMAL_KINDS else "credit"

    @property
    def balance_sheet_section(self):
        # None for revenue/expense/cost groups
        return BALANCE_SHEET_SECTIONS.get(self.kind)

    def clean(self):
        if not self.code.isdigit():
            raise ValidationError("Main group code must be numeric.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


# ---------- Chart of Accounts: rollup level ----------
class Subgroup(models.Model):
    """
    Second level of the chart (101 Inventory, 102 Cash, 301 Purchase Orders
    Payables, ...). Its code decides which main group total it rolls into.
    """

    code = models.CharField(max_length=16, unique=True)
    name = models.CharField(max_length=100)
    main_group = models.ForeignKey(
        MainGroup,
        # a main group cannot go away while subgroups hang under it
        on_delete=models.PROTECT,
        related_name="subgroups",
    )
    is_active = models.BooleanField(default=True)
    # fixed subgroups seeded at setup are protected
    can_delete = models.BooleanField(default=True)

    class Meta:
        ordering = ("code",)
        indexes = [models.Index(fields=["main_group", "code"], name="subgroup_main_code_idx")]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        if not self.code.isdigit():
            raise ValidationError("Subgroup code must be numeric.")
        # 101, 102 under main group 1; 301 under 3 ...
        if self.main_group_id and not self.code.startswith(self.main_group.code):
            raise ValidationError(
                f"Subgroup code {self.code} must start with its main group "
                f"code {self.main_group.code}."
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def check_deletable(self):
        if not self.can_delete:
            raise ValidationError(f"Subgroup {self} is protected and cannot be deleted.")

    def delete(self, *args, **kwargs):
        # refuse before Django opens its delete transaction
        self.check_deletable()
        return super().delete(*args, **kwargs)
