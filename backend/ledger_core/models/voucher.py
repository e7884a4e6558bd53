import hashlib
import json
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import AlreadyPostedDifferentPayload, UnbalancedEntryError
from ..managers import VoucherEntryManager, VoucherManager
from .account import Account

VOUCHER_TYPES = [
    ("journal", "Journal Voucher"),  # JV: purchases, revenue, COGS
    ("payment", "Payment Voucher"),  # PV: money out of cash/bank
    ("receipt", "Receipt Voucher"),  # RV: money into cash/bank
    ("contra", "Contra Voucher"),  # CV: cash <-> bank transfers
]

# Number prefix per voucher type (JV0001, PV0001, ...)
VOUCHER_PREFIXES = {
    "journal": "JV",
    "payment": "PV",
    "receipt": "RV",
    "contra": "CV",
}

VOUCHER_STATUS = [
    ("draft", "Draft"),  # still editable, ignored by reports
    ("posted", "Posted"),  # finalized, counts towards balances
    ("cancelled", "Cancelled"),  # reversed out of running balances
]


# ---------- Document numbering ----------
class NumberSequence(models.Model):
    """
    One counter per key ("voucher:journal", "dpo", "invoice", ...).
    Read and bumped under a row lock, so two concurrent postings never
    get the same number.
    """

    key = models.CharField(max_length=50, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.key}={self.last_value}"

    @classmethod
    @transaction.atomic
    def next_value(cls, key):
        cls.objects.get_or_create(key=key)
        seq = cls.objects.select_for_update().get(key=key)
        seq.last_value += 1
        seq.save(update_fields=["last_value"])
        return seq.last_value


# ---------- Voucher (Header) & VoucherEntry ----------
class Voucher(models.Model):  # One balanced accounting transaction
    voucher_number = models.CharField(max_length=20, unique=True)
    voucher_type = models.CharField(max_length=10, choices=VOUCHER_TYPES)
    date = models.DateField()
    narration = models.TextField(null=True, blank=True)
    # Cash/bank side of payment, receipt and contra vouchers
    cash_bank_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="cash_bank_vouchers",
    )
    status = models.CharField(
        max_length=10,
        choices=VOUCHER_STATUS,
        default="draft",
    )
    # Cached on posting; recomputed from entries every time we post
    total_debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    # Where the voucher came from ("dpo", "dpo_payment", "invoice", ...)
    source_type = models.CharField(max_length=50, null=True, blank=True)
    source_id = models.BigIntegerField(null=True, blank=True)
    # Fingerprint-based idempotency (safe to post twice if nothing changed)
    posting_fingerprint = models.CharField(max_length=64, null=True, blank=True)

    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    posted_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = VoucherManager()

    class Meta:
        ordering = ("-date", "-id")
        indexes = [
            models.Index(fields=["status", "date"], name="voucher_status_date_idx"),
            models.Index(fields=["voucher_type", "date"], name="voucher_type_date_idx"),
            models.Index(fields=["source_type", "source_id"], name="voucher_source_idx"),
        ]

    def __str__(self):
        return f"{self.voucher_number} {self.date} [{self.status}]"

    # Aggregate all debit and credit amounts across the entries
    def compute_totals(self):
        aggs = self.entries.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    def is_balanced(self):
        from ..services.vouchers import is_balanced

        return is_balanced(*self.compute_totals())

    def _posting_payload(self):
        """Deterministic JSON snapshot of what matters for posting.
        Same data in, same string out, no matter when it is called."""
        entries = [
            {
                "acct": entry.account_id,
                "debit": str(entry.debit),
                "credit": str(entry.credit),
                "desc": entry.description or "",
            }
            for entry in self.entries.order_by("id").all()
        ]
        payload = {
            "type": self.voucher_type,
            "date": self.date.isoformat(),
            "entries": entries,
        }
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    def _fingerprint(self):
        return hashlib.sha256(self._posting_payload().encode()).hexdigest()

    def _apply_to_balances(self, sign):
        """Move running balances of every account touched by this voucher.
        sign=1 when posting, sign=-1 when cancelling."""
        per_account = self.entries.values("account_id").annotate(
            dr=models.Sum("debit"), cr=models.Sum("credit")
        )
        moves = {row["account_id"]: (row["dr"], row["cr"]) for row in per_account}
        # Lock account rows only (not their subgroup/main group), in pk order
        accounts = (
            Account.objects.select_for_update(of=("self",))
            .filter(pk__in=moves.keys())
            .select_related("subgroup__main_group")
            .order_by("pk")
        )
        for account in accounts:
            debit, credit = moves[account.pk]
            delta = account.signed_movement(debit, credit) * sign
            Account.objects.filter(pk=account.pk).update(
                current_balance=account.current_balance + delta,
                can_delete=False,
            )

    @transaction.atomic
    def post(self, user=None):
        """
        Post the voucher: validate, stamp and move running balances.
        Posting an already posted voucher with unchanged entries is a no-op.
        """
        from ..services.vouchers import is_balanced, round2

        # Lock header + entries against concurrent modifications
        voucher = Voucher.objects.select_for_update().get(pk=self.pk)
        entries = voucher.entries.select_for_update(of=("self",)).all()

        """ Business validations """
        if not entries.exists():
            raise ValidationError("Voucher must have at least one entry.")

        # Recompute totals fresh from DB, never trust cached values
        total_debit, total_credit = voucher.compute_totals()
        total_debit, total_credit = round2(total_debit), round2(total_credit)
        if not is_balanced(total_debit, total_credit):
            raise UnbalancedEntryError(total_debit, total_credit)

        fp = voucher._fingerprint()

        """ Idempotency & immutability """
        if voucher.status == "posted":
            if voucher.posting_fingerprint == fp:
                return voucher
            raise AlreadyPostedDifferentPayload(
                f"Voucher {voucher.voucher_number} already posted with different payload."
            )
        if voucher.status == "cancelled":
            raise ValidationError("Cannot post a cancelled voucher.")

        inactive = entries.exclude(account__status="Active")
        if inactive.exists():
            codes = ", ".join(sorted({e.account.code for e in inactive}))
            raise ValidationError(f"Cannot post to inactive account(s): {codes}")

        """ Update state """
        voucher.status = "posted"
        voucher.posted_at = timezone.now()
        voucher.total_debit = total_debit
        voucher.total_credit = total_credit
        voucher.posting_fingerprint = fp
        if user:
            voucher.created_by = str(user)
        voucher.save(
            update_fields=[
                "status",
                "posted_at",
                "total_debit",
                "total_credit",
                "posting_fingerprint",
                "created_by",
            ]
        )
        voucher._apply_to_balances(sign=1)

        # keep the caller's instance in sync
        self.refresh_from_db()
        return voucher

    @transaction.atomic
    def cancel(self, user=None):
        """Reverse a posted voucher out of the running balances.
        Entries stay for the audit trail; reports skip cancelled vouchers."""
        voucher = Voucher.objects.select_for_update().get(pk=self.pk)
        if voucher.status != "posted":
            raise ValidationError(
                f"Only posted vouchers can be cancelled ({voucher.status})."
            )
        voucher._apply_to_balances(sign=-1)
        voucher.status = "cancelled"
        voucher.cancelled_at = timezone.now()
        voucher.save(update_fields=["status", "cancelled_at"])
        self.refresh_from_db()
        return voucher

    # Control status changes
    def transition_to(self, new_status, user=None):
        allowed = {
            "draft": ["posted"],
            "posted": ["cancelled"],
            "cancelled": [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(f"Cannot go from {self.status} to {new_status}")

        if new_status == "posted":
            return self.post(user=user)
        return self.cancel(user=user)

    def clean(self):
        """Don't modify the core of a posted voucher"""
        if self.pk and self.status in ("posted", "cancelled"):
            orig = Voucher.objects.get(pk=self.pk)
            for f in ("voucher_number", "voucher_type", "date"):
                if getattr(orig, f) != getattr(self, f):
                    raise ValidationError(
                        "Cannot modify a posted Voucher. It is immutable."
                    )
        if self.voucher_number:
            prefix = VOUCHER_PREFIXES.get(self.voucher_type, "")
            if not self.voucher_number.startswith(prefix):
                raise ValidationError(
                    f"{self.get_voucher_type_display()} numbers start with {prefix}."
                )

    def save(self, *args, **kwargs):
        if self.pk:
            orig = Voucher.objects.filter(pk=self.pk).only("status").first()
            # posted -> draft is never allowed; cancelled is final
            if orig and orig.status == "posted" and self.status == "draft":
                raise ValidationError("Cannot unpost a posted voucher")
            if orig and orig.status == "cancelled" and self.status != "cancelled":
                raise ValidationError("Cannot reopen a cancelled voucher")
        super().save(*args, **kwargs)

    def check_deletable(self):
        # posted and cancelled vouchers stay for the audit trail
        if self.status != "draft":
            raise ValidationError(
                f"Cannot delete {self.status} voucher {self.voucher_number}."
            )

    def delete(self, *args, **kwargs):
        self.check_deletable()
        return super().delete(*args, **kwargs)


class VoucherEntry(models.Model):  # One debit or credit line
    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    # can't delete an account that vouchers point at
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="entries"
    )
    description = models.CharField(max_length=400, null=True, blank=True)
    debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    sort_order = models.PositiveIntegerField(default=0)

    objects = VoucherEntryManager()

    class Meta:
        ordering = ("sort_order", "id")
        indexes = [
            models.Index(fields=["account", "voucher"], name="ventry_account_voucher_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="ve_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit__gt=0) & models.Q(credit__gt=0)),
                name="ve_not_both_sides",
            ),
        ]

    def __str__(self):
        return (
            f"{self.voucher_id} | {self.account.code} {self.account.name} "
            f"| D:{self.debit or 0} C:{self.credit or 0}"
        )

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError(
                "VoucherEntry should not have both debit and credit > 0"
            )

        # Entries of a posted voucher are frozen
        if self.voucher_id:
            frozen = (
                Voucher.objects.filter(pk=self.voucher_id)
                .exclude(status="draft")
                .exists()
            )
            if frozen:
                if not self.pk:
                    raise ValidationError(
                        "Cannot add VoucherEntry: parent voucher is posted."
                    )
                orig = VoucherEntry.objects.get(pk=self.pk)
                changed = (
                    orig.debit != self.debit
                    or orig.credit != self.credit
                    or orig.account_id != self.account_id
                )
                if changed:
                    raise ValidationError(
                        "Cannot modify VoucherEntry: parent voucher is posted."
                    )

    def delete(self, *args, **kwargs):
        if (
            Voucher.objects.filter(pk=self.voucher_id)
            .exclude(status="draft")
            .exists()
        ):
            raise ValidationError(
                "Cannot delete VoucherEntry: parent voucher is posted."
            )
        return super().delete(*args, **kwargs)

    def save(self, *args, **kwargs):
        from ..services.vouchers import round2

        self.debit = round2(self.debit)
        self.credit = round2(self.credit)
        self.full_clean()
        return super().save(*args, **kwargs)
