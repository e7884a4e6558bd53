from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from .account import Account
from .voucher import Voucher

DPO_STATUS = [
    ("posted", "Posted"),  # purchase JV booked, nothing paid yet
    ("partially_paid", "Partially paid"),
    ("paid", "Paid"),
]

INVOICE_STATUS = [
    ("draft", "Draft"),
    ("approved", "Approved"),  # revenue, receipts and COGS posted
    ("cancelled", "Cancelled"),
]


# ---------- Parties ----------
class Supplier(models.Model):
    name = models.CharField(max_length=200)
    company_name = models.CharField(max_length=200, null=True, blank=True)
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Payable account opened for this supplier under subgroup 301
    """ If set: purchases and payments for this supplier book the
    liability here instead of the generic payable account. """
    payable_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="suppliers",
    )

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name

    @property
    def display_name(self):
        return self.company_name or self.name

    def clean(self):
        acc = self.payable_account
        if acc and acc.main_group.kind != "liability":
            raise ValidationError("Supplier payable account must be a liability.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class Customer(models.Model):
    name = models.CharField(max_length=200)
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Receivable account opened for this customer under subgroup 104
    receivable_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers",
    )

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name

    def clean(self):
        acc = self.receivable_account
        if acc and acc.main_group.kind != "asset":
            raise ValidationError("Customer receivable account must be an asset.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ---------- Parts ----------
class Part(models.Model):
    part_no = models.CharField(max_length=80, unique=True)
    description = models.CharField(max_length=300, null=True, blank=True)
    brand = models.CharField(max_length=100, null=True, blank=True)
    # Standard cost; empty means "use the last purchase price"
    cost = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        ordering = ("part_no",)

    def __str__(self):
        return self.part_no

    def latest_purchase_price(self):
        return (
            DirectPurchaseOrderItem.objects.filter(part=self)
            .order_by("-dpo__date", "-id")
            .values_list("purchase_price", flat=True)
            .first()
        )

    def cost_basis(self):
        """Unit cost used for COGS: standard cost, else last purchase price."""
        if self.cost:
            return self.cost
        return self.latest_purchase_price() or Decimal("0.00")


# ---------- Direct Purchase Order ----------
class DirectPurchaseOrder(models.Model):
    """
    Goods bought and received in one step. Creating one books the
    purchase journal voucher (inventory in, supplier liability out).
    """

    dpo_no = models.CharField(max_length=30, unique=True)
    date = models.DateField()
    store = models.CharField(max_length=100, null=True, blank=True)
    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, related_name="purchase_orders"
    )
    # Set when the DPO was paid at creation time
    payment_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    description = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=DPO_STATUS, default="posted")

    # items + expenses
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    paid_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    journal_voucher = models.ForeignKey(
        Voucher,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-date", "-id")
        verbose_name = "Direct purchase order"

    def __str__(self):
        return self.dpo_no

    @property
    def items_total(self):
        return sum((i.amount for i in self.items.all()), Decimal("0.00"))

    @property
    def outstanding_amount(self):
        return max(self.items_total - self.paid_amount, Decimal("0.00"))

    def refresh_payment_status(self):
        if self.paid_amount <= 0:
            self.status = "posted"
        elif self.paid_amount < self.items_total:
            self.status = "partially_paid"
        else:
            self.status = "paid"


class DirectPurchaseOrderItem(models.Model):
    dpo = models.ForeignKey(
        DirectPurchaseOrder, on_delete=models.CASCADE, related_name="items"
    )
    part = models.ForeignKey(Part, on_delete=models.PROTECT, related_name="+")
    quantity = models.PositiveIntegerField()
    purchase_price = models.DecimalField(max_digits=18, decimal_places=2)
    # quantity * purchase_price, rounded
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    remarks = models.CharField(max_length=200, null=True, blank=True)

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return f"{self.part} x {self.quantity}"


class DirectPurchaseOrderExpense(models.Model):
    """Freight, customs and other charges capitalised into inventory."""

    dpo = models.ForeignKey(
        DirectPurchaseOrder, on_delete=models.CASCADE, related_name="expenses"
    )
    expense_type = models.CharField(max_length=50)  # "Freight", "Customs"
    # Who we owe the charge to
    payable_account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="+"
    )
    description = models.CharField(max_length=200, null=True, blank=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return f"{self.expense_type} {self.amount}"


# ---------- Sales Invoice ----------
class SalesInvoice(models.Model):
    invoice_no = models.CharField(max_length=30, unique=True)
    date = models.DateField()
    customer = models.ForeignKey(
        Customer,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    # walk-in sales carry only a name
    customer_name = models.CharField(max_length=200, null=True, blank=True)
    sales_person = models.CharField(max_length=100, null=True, blank=True)

    # Amounts collected at the counter
    cash_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    cash_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    bank_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    bank_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    discount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    grand_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    status = models.CharField(max_length=10, choices=INVOICE_STATUS, default="draft")
    approved_by = models.CharField(max_length=150, null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-date", "-id")

    def __str__(self):
        return self.invoice_no

    @property
    def party_name(self):
        if self.customer_id:
            return self.customer.name
        return self.customer_name or "Walk-in customer"

    @property
    def received_amount(self):
        return self.cash_amount + self.bank_amount

    def clean(self):
        """Approved invoices are frozen"""
        if self.pk and self.status == "approved":
            orig = SalesInvoice.objects.get(pk=self.pk)
            if orig.status == "approved":
                for f in ("grand_total", "customer_id", "date"):
                    if getattr(orig, f) != getattr(self, f):
                        raise ValidationError(
                            "Cannot modify an approved invoice."
                        )
        if self.received_amount > self.grand_total:
            raise ValidationError(
                f"Received {self.received_amount} exceeds invoice total {self.grand_total}."
            )

    def check_deletable(self):
        # vouchers are booked against approved invoices
        if self.status == "approved":
            raise ValidationError("Cannot delete an approved invoice.")

    def delete(self, *args, **kwargs):
        self.check_deletable()
        return super().delete(*args, **kwargs)


class SalesInvoiceItem(models.Model):
    invoice = models.ForeignKey(
        SalesInvoice, on_delete=models.CASCADE, related_name="items"
    )
    part = models.ForeignKey(Part, on_delete=models.PROTECT, related_name="+")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    discount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    line_total = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return f"{self.part} x {self.quantity}"
