from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.test import TestCase

from ..exceptions import AccountNotFoundError
from ..models import Account, MainGroup, Subgroup, Supplier
from ..services.chart import (find_account_by_code, find_accounts_by_subgroup,
                              get_subgroups_by_main_group, next_account_code,
                              open_account, open_customer_account,
                              open_supplier_account, resolve_account,
                              seed_chart_of_accounts)
from .base import LedgerTestCase


class SeedChartTests(TestCase):
    def test_seed_creates_default_chart(self):
        created = seed_chart_of_accounts()
        self.assertEqual(created["main_groups"], 9)
        self.assertEqual(created["subgroups"], Subgroup.objects.count())
        self.assertEqual(created["accounts"], Account.objects.count())
        self.assertEqual(Account.objects.get(code="101001").role, "inventory")
        self.assertEqual(Account.objects.get(code="901001").role, "cogs")

    def test_seed_is_idempotent(self):
        seed_chart_of_accounts()
        again = seed_chart_of_accounts()
        self.assertEqual(again, {"main_groups": 0, "subgroups": 0, "accounts": 0})
        self.assertEqual(MainGroup.objects.count(), 9)


class ChartInvariantTests(LedgerTestCase):
    def test_every_code_starts_with_its_parent_code(self):
        for account in Account.objects.select_related("subgroup__main_group"):
            self.assertTrue(account.code.startswith(account.subgroup.code))
            self.assertTrue(
                account.subgroup.code.startswith(account.subgroup.main_group.code)
            )

    def test_subgroup_code_must_match_main_group(self):
        current_assets = MainGroup.objects.get(code="1")
        with self.assertRaises(ValidationError):
            Subgroup.objects.create(code="201", name="Wrong", main_group=current_assets)

    def test_account_code_must_match_subgroup(self):
        inventory_group = Subgroup.objects.get(code="101")
        with self.assertRaises(ValidationError):
            Account.objects.create(code="102005", name="Wrong", subgroup=inventory_group)

    def test_normal_balance_follows_main_group(self):
        self.assertEqual(self.inventory.normal_balance, "debit")
        self.assertEqual(self.cogs.normal_balance, "debit")
        self.assertEqual(self.revenue.normal_balance, "credit")
        self.assertEqual(MainGroup.objects.get(code="6").normal_balance, "credit")


class ChartLookupTests(LedgerTestCase):
    def test_find_account_by_code(self):
        self.assertEqual(find_account_by_code("101001"), self.inventory)
        with self.assertRaises(AccountNotFoundError):
            find_account_by_code("999999")

    def test_find_accounts_by_subgroup(self):
        codes = list(find_accounts_by_subgroup("102").values_list("code", flat=True))
        self.assertEqual(codes, ["102001"])

    def test_get_subgroups_by_main_group(self):
        codes = list(get_subgroups_by_main_group("1").values_list("code", flat=True))
        self.assertEqual(codes, ["101", "102", "103", "104"])
        # a main group without subgroups gives an empty result, not an error
        self.assertFalse(get_subgroups_by_main_group("2").exists())

    def test_resolve_account_by_role(self):
        self.assertEqual(resolve_account("inventory"), self.inventory)
        # two cash/bank accounts: lowest code wins
        self.assertEqual(resolve_account("cash_bank"), self.cash)

    def test_resolve_account_skips_inactive(self):
        self.inventory.status = "Inactive"
        self.inventory.save()
        with self.assertRaises(AccountNotFoundError) as ctx:
            resolve_account("inventory", "Inventory account (101001) is not set up")
        self.assertEqual(ctx.exception.role, "inventory")
        self.assertIn("101001", str(ctx.exception))


class OpenAccountTests(LedgerTestCase):
    def test_next_code_increments_max_sequence(self):
        payables = Subgroup.objects.get(code="301")
        self.assertEqual(next_account_code(payables), "301002")
        # an empty subgroup starts at 001
        other = Subgroup.objects.get(code="303")
        self.assertEqual(next_account_code(other), "303001")

    def test_open_account_sets_running_balance(self):
        cash_group = Subgroup.objects.get(code="102")
        petty = open_account(
            cash_group, "Petty Cash", role="cash_bank", opening_balance=Decimal("25.00")
        )
        self.assertEqual(petty.code, "102002")
        self.assertEqual(petty.current_balance, Decimal("25.00"))

    def test_open_supplier_account(self):
        supplier = Supplier.objects.create(name="Acme", opening_balance=Decimal("50.00"))
        account = open_supplier_account(supplier)
        self.assertEqual(account.code, "301002")
        self.assertEqual(account.account_type, "person")
        self.assertEqual(account.opening_balance, Decimal("50.00"))
        self.assertFalse(account.can_delete)

        supplier.refresh_from_db()
        self.assertEqual(supplier.payable_account, account)
        # second call reuses the same ledger
        self.assertEqual(open_supplier_account(supplier), account)
        self.assertEqual(Account.objects.in_subgroup("301").count(), 2)

    def test_open_customer_account(self):
        account = open_customer_account(self.customer)
        self.assertEqual(account.code, "104002")
        self.assertEqual(account.name, "Cust")
        self.assertEqual(account.subgroup.main_group.kind, "asset")

    def test_unused_account_can_be_deleted(self):
        cash_group = Subgroup.objects.get(code="102")
        petty = open_account(cash_group, "Petty Cash", role="cash_bank")
        petty.delete()
        self.assertFalse(Account.objects.filter(code="102002").exists())

    def test_seeded_accounts_are_protected(self):
        with self.assertRaises(ValidationError):
            self.inventory.delete()
        # 303 has no accounts, only the protection flag stops the delete
        with self.assertRaises(ValidationError):
            Subgroup.objects.get(code="303").delete()

    def test_refused_delete_keeps_transaction_usable(self):
        with transaction.atomic():
            with self.assertRaises(ValidationError):
                self.inventory.delete()
            with self.assertRaises(ValidationError):
                Subgroup.objects.get(code="303").delete()
            self.assertTrue(Account.objects.filter(code="101001").exists())
            self.assertTrue(Subgroup.objects.filter(code="303").exists())
