from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import connection, transaction
from django.test import SimpleTestCase, skipUnlessDBFeature
from django.test.utils import CaptureQueriesContext

from ..exceptions import (AlreadyPostedDifferentPayload, InvalidAmountError,
                          UnbalancedEntryError)
from ..models import Account, NumberSequence, Subgroup, Voucher, VoucherEntry
from ..services.chart import open_account
from ..services.vouchers import (cancel_voucher, create_voucher, is_balanced,
                                 post_voucher, round2, whole_quantity)
from .base import LedgerTestCase


class MoneyHelperTests(SimpleTestCase):
    def test_round2_is_half_away_from_zero(self):
        self.assertEqual(round2("2.675"), Decimal("2.68"))
        self.assertEqual(round2(Decimal("-2.675")), Decimal("-2.68"))
        self.assertEqual(round2("0.125"), Decimal("0.13"))

    def test_round2_drops_float_noise(self):
        self.assertEqual(round2(0.1 + 0.2), Decimal("0.30"))
        self.assertEqual(round2(None), Decimal("0.00"))

    def test_round2_rejects_non_numeric(self):
        with self.assertRaises(InvalidAmountError):
            round2("abc")

    def test_is_balanced_uses_cent_tolerance(self):
        self.assertTrue(is_balanced("100.004", "100.00"))
        self.assertFalse(is_balanced("100.01", "100.00"))

    def test_whole_quantity(self):
        self.assertEqual(whole_quantity("3"), 3)
        for bad in (0, -1, "1.5", "x"):
            with self.assertRaises(InvalidAmountError):
                whole_quantity(bad)


class VoucherPostingTests(LedgerTestCase):
    def journal(self, amount="50.00", **kwargs):
        """Dr Inventory / Cr Cash for `amount`."""
        return create_voucher(
            kwargs.pop("voucher_type", "journal"),
            self.today,
            "Stock bought for cash",
            [
                {"account": self.inventory, "debit": amount, "description": "Stock in"},
                {"account": self.cash, "credit": amount, "description": "Cash out"},
            ],
            **kwargs,
        )

    def test_create_voucher_posts_and_moves_running_balances(self):
        voucher = self.journal()
        self.assertEqual(voucher.voucher_number, "JV0001")
        self.assertEqual(voucher.status, "posted")
        self.assertIsNotNone(voucher.posted_at)
        self.assertEqual(voucher.total_debit, Decimal("50.00"))
        self.assertEqual(voucher.total_credit, Decimal("50.00"))
        self.assertTrue(voucher.is_balanced())

        self.assertEqual(self.reload(self.inventory), Decimal("50.00"))
        # cash is debit-normal: a credit lowers it
        self.assertEqual(self.reload(self.cash), Decimal("-50.00"))
        self.assertFalse(self.inventory.can_delete)

    def test_numbers_are_sequential_per_type(self):
        numbers = [
            self.journal().voucher_number,
            self.journal().voucher_number,
            self.journal(voucher_type="payment").voucher_number,
        ]
        self.assertEqual(numbers, ["JV0001", "JV0002", "PV0001"])
        self.assertEqual(
            NumberSequence.objects.get(key="voucher:journal").last_value, 2
        )

    def test_unbalanced_voucher_is_never_persisted(self):
        with self.assertRaises(UnbalancedEntryError) as ctx:
            create_voucher(
                "journal",
                self.today,
                "Broken",
                [
                    {"account": self.inventory, "debit": "100.00"},
                    {"account": self.cash, "credit": "99.00"},
                ],
            )
        self.assertEqual(ctx.exception.difference, Decimal("1.00"))
        self.assertEqual(Voucher.objects.count(), 0)
        self.assertEqual(VoucherEntry.objects.count(), 0)

    def test_line_with_both_sides_is_rejected(self):
        with self.assertRaises(InvalidAmountError):
            create_voucher(
                "journal",
                self.today,
                "Both sides",
                [
                    {"account": self.inventory, "debit": "10", "credit": "10"},
                    {"account": self.cash, "debit": "0", "credit": "0"},
                ],
            )
        self.assertEqual(Voucher.objects.count(), 0)

    def test_negative_amount_is_rejected(self):
        with self.assertRaises(InvalidAmountError):
            self.journal(amount="-5")

    def test_zero_lines_are_allowed(self):
        voucher = create_voucher(
            "journal",
            self.today,
            "With a memo line",
            [
                {"account": self.inventory, "debit": "10"},
                {"account": self.revenue, "description": "memo only"},
                {"account": self.cash, "credit": "10"},
            ],
        )
        self.assertEqual(voucher.entries.count(), 3)
        self.assertEqual(voucher.status, "posted")

    def test_posted_entries_are_immutable(self):
        voucher = self.journal()
        entry = voucher.entries.first()

        entry.debit = Decimal("60.00")
        with self.assertRaises(ValidationError):
            entry.save()

        with self.assertRaises(ValidationError):
            VoucherEntry.objects.create(voucher=voucher, account=self.cash, credit=1)

        with self.assertRaises(ValidationError):
            entry.delete()
        self.assertEqual(voucher.entries.count(), 2)

    def test_posted_voucher_cannot_be_deleted(self):
        voucher = self.journal()
        with self.assertRaises(ValidationError):
            voucher.delete()
        self.assertTrue(Voucher.objects.filter(pk=voucher.pk).exists())

    def test_refused_delete_leaves_transaction_usable(self):
        voucher = self.journal()
        with transaction.atomic():
            with self.assertRaises(ValidationError):
                voucher.delete()
            # the caller can keep working in the same transaction
            self.assertEqual(Voucher.objects.filter(pk=voucher.pk).count(), 1)
            self.assertEqual(voucher.entries.count(), 2)

    def test_queryset_delete_is_refused_too(self):
        voucher = self.journal()
        with self.assertRaises(ValidationError):
            with transaction.atomic():
                Voucher.objects.filter(pk=voucher.pk).delete()
        self.assertTrue(Voucher.objects.filter(pk=voucher.pk).exists())

    def test_draft_voucher_can_be_deleted(self):
        voucher = self.journal(post=False)
        voucher.delete()
        self.assertFalse(Voucher.objects.filter(pk=voucher.pk).exists())
        self.assertEqual(VoucherEntry.objects.count(), 0)

    def test_reposting_unchanged_voucher_is_a_noop(self):
        voucher = self.journal()
        post_voucher(voucher.pk)
        voucher.post()
        self.assertEqual(self.reload(self.inventory), Decimal("50.00"))

    def test_reposting_changed_payload_is_rejected(self):
        voucher = self.journal()
        # bypass model validation to simulate tampering
        VoucherEntry.objects.filter(voucher=voucher).update(description="changed")
        with self.assertRaises(AlreadyPostedDifferentPayload):
            voucher.post()

    def test_draft_then_post(self):
        voucher = self.journal(post=False)
        self.assertEqual(voucher.status, "draft")
        self.assertEqual(self.reload(self.inventory), Decimal("0.00"))

        post_voucher(voucher.pk, user="clerk")
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "posted")
        self.assertEqual(voucher.created_by, "clerk")
        self.assertEqual(self.reload(self.inventory), Decimal("50.00"))

    def test_posting_unbalanced_draft_fails(self):
        voucher = Voucher.objects.create(
            voucher_number="JV0099", voucher_type="journal", date=self.today
        )
        VoucherEntry.objects.create(voucher=voucher, account=self.inventory, debit=10)
        with self.assertRaises(UnbalancedEntryError):
            voucher.post()
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "draft")

    def test_posting_empty_voucher_fails(self):
        voucher = Voucher.objects.create(
            voucher_number="JV0098", voucher_type="journal", date=self.today
        )
        with self.assertRaises(ValidationError):
            voucher.post()

    def test_cannot_post_to_inactive_account(self):
        self.cash.status = "Inactive"
        self.cash.save()
        with self.assertRaises(ValidationError):
            self.journal()
        self.assertEqual(Voucher.objects.count(), 0)

    def test_cancel_reverses_balances_and_keeps_entries(self):
        voucher = self.journal()
        cancel_voucher(voucher.pk, user="auditor")
        voucher.refresh_from_db()

        self.assertEqual(voucher.status, "cancelled")
        self.assertIsNotNone(voucher.cancelled_at)
        self.assertEqual(voucher.entries.count(), 2)
        self.assertEqual(self.reload(self.inventory), Decimal("0.00"))
        self.assertEqual(self.reload(self.cash), Decimal("0.00"))

        # cancelled is terminal
        with self.assertRaises(ValidationError):
            voucher.transition_to("posted")
        with self.assertRaises(ValidationError):
            cancel_voucher(voucher.pk)

    def test_draft_cannot_be_cancelled(self):
        voucher = self.journal(post=False)
        with self.assertRaises(ValidationError):
            voucher.transition_to("cancelled")

    def test_used_account_cannot_be_deleted_or_moved(self):
        cash_group = Subgroup.objects.get(code="102")
        petty = open_account(cash_group, "Petty Cash", role="cash_bank")
        create_voucher(
            "journal",
            self.today,
            "Float",
            [
                {"account": petty, "debit": "5"},
                {"account": self.cash, "credit": "5"},
            ],
        )
        petty = Account.objects.get(pk=petty.pk)
        self.assertFalse(petty.can_delete)
        with self.assertRaises(ValidationError):
            petty.delete()
        self.assertTrue(Account.objects.filter(pk=petty.pk).exists())

        petty.code = "102009"
        with self.assertRaises(ValidationError):
            petty.save()

    @skipUnlessDBFeature("has_select_for_update_of")
    def test_posting_locks_account_rows_only(self):
        voucher = self.journal(post=False)
        with CaptureQueriesContext(connection) as ctx:
            post_voucher(voucher.pk)
        locks = [q["sql"] for q in ctx.captured_queries if "FOR UPDATE" in q["sql"]]
        account_locks = [sql for sql in locks if '"ledger_core_subgroup"' in sql]
        self.assertTrue(account_locks)
        for sql in account_locks:
            # joined subgroup / main group rows are read, not locked
            self.assertIn('FOR UPDATE OF "ledger_core_account"', sql)
