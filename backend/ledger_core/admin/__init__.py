from .actions import approve_invoices, cancel_vouchers, post_vouchers
from .chart import AccountAdmin, MainGroupAdmin, SubgroupAdmin
from .documents import (CustomerAdmin, DirectPurchaseOrderAdmin, PartAdmin,
                        SalesInvoiceAdmin, SupplierAdmin)
from .inlines import (DirectPurchaseOrderExpenseInline,
                      DirectPurchaseOrderItemInline, SalesInvoiceItemInline,
                      VoucherEntryInline)
from .vouchers import NumberSequenceAdmin, VoucherAdmin
