import logging
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidAmountError
from ..models import NumberSequence, SalesInvoice, SalesInvoiceItem
from .chart import open_customer_account
from .posting import post_sales_revenue
from .vouchers import round2, whole_quantity

logger = logging.getLogger(__name__)


def next_invoice_number():
    return f"INV-{NumberSequence.next_value('invoice'):04d}"


def create_sales_invoice(
    date,
    items,
    customer=None,
    customer_name=None,
    sales_person=None,
    discount=Decimal("0.00"),
    tax=Decimal("0.00"),
    cash_account=None,
    cash_amount=Decimal("0.00"),
    bank_account=None,
    bank_amount=Decimal("0.00"),
):
    """
    Save a draft invoice with its lines and totals. Nothing is booked
    until the invoice is approved.

    items: [{"part", "quantity", "unit_price", "discount"}]
    """
    if not items:
        raise InvalidAmountError("An invoice needs at least one item")

    rows = []
    for item in items:
        qty = whole_quantity(item.get("quantity"))
        price = round2(item.get("unit_price"))
        line_discount = round2(item.get("discount"))
        if price < 0 or line_discount < 0:
            raise InvalidAmountError("Unit price and discount cannot be negative")
        line_total = round2(qty * price - line_discount)
        if line_total < 0:
            raise InvalidAmountError("Line discount exceeds the line amount")
        rows.append((item, qty, price, line_discount, line_total))

    discount, tax = round2(discount), round2(tax)
    cash_amount, bank_amount = round2(cash_amount), round2(bank_amount)
    if discount < 0 or tax < 0 or cash_amount < 0 or bank_amount < 0:
        raise InvalidAmountError("Invoice amounts cannot be negative")

    subtotal = sum((row[-1] for row in rows), Decimal("0.00"))
    grand_total = subtotal - discount + tax
    if grand_total <= 0:
        raise InvalidAmountError("Invoice total must be > 0")
    if cash_amount + bank_amount > grand_total:
        raise InvalidAmountError(
            f"Received {cash_amount + bank_amount} exceeds invoice total {grand_total}"
        )

    with transaction.atomic():
        invoice = SalesInvoice.objects.create(
            invoice_no=next_invoice_number(),
            date=date,
            customer=customer,
            customer_name=customer_name or (customer.name if customer else None),
            sales_person=sales_person,
            cash_account=cash_account,
            cash_amount=cash_amount,
            bank_account=bank_account,
            bank_amount=bank_amount,
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            grand_total=grand_total,
        )
        for item, qty, price, line_discount, line_total in rows:
            SalesInvoiceItem.objects.create(
                invoice=invoice,
                part=item["part"],
                quantity=qty,
                unit_price=price,
                discount=line_discount,
                line_total=line_total,
            )
    return invoice


def approve_sales_invoice(invoice_id, approved_by=None):
    """
    draft -> approved, booking revenue, receipts and COGS in the same
    transaction. Returns (invoice, vouchers).
    """
    with transaction.atomic():
        invoice = SalesInvoice.objects.select_for_update().get(pk=invoice_id)
        if invoice.status != "draft":
            raise ValidationError(
                f"Invoice {invoice.invoice_no} is {invoice.status}; only drafts can be approved"
            )
        if invoice.customer_id:
            open_customer_account(invoice.customer)

        vouchers = post_sales_revenue(invoice, created_by=approved_by)

        invoice.status = "approved"
        invoice.approved_by = approved_by
        invoice.approved_at = timezone.now()
        invoice.save(update_fields=["status", "approved_by", "approved_at"])

    logger.info(
        "INV %s approved by %s: revenue=%s receipts=%s cogs=%s",
        invoice.invoice_no,
        approved_by,
        vouchers["revenue"].voucher_number,
        [v.voucher_number for v in vouchers["receipts"]],
        vouchers["cogs"].voucher_number if vouchers["cogs"] else None,
    )
    return invoice, vouchers
