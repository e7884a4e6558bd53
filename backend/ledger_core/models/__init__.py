from .account import ACCOUNT_ROLES, Account
from .chart import MainGroup, Subgroup
from .documents import (Customer, DirectPurchaseOrder,
                        DirectPurchaseOrderExpense, DirectPurchaseOrderItem,
                        Part, SalesInvoice, SalesInvoiceItem, Supplier)
from .voucher import (VOUCHER_PREFIXES, VOUCHER_TYPES, NumberSequence,
                      Voucher, VoucherEntry)
