from .chart import (find_account_by_code, find_accounts_by_subgroup,
                    get_subgroups_by_main_group, open_customer_account,
                    open_supplier_account, resolve_account,
                    seed_chart_of_accounts)
from .posting import post_payment, post_purchase, post_sales_revenue
from .purchases import (create_direct_purchase_order,
                        pay_direct_purchase_order, serialize_dpo)
from .queries import get_voucher_by_number, search_vouchers, serialize_voucher
from .reports import (compute_balance_sheet, compute_general_ledger,
                      compute_income_statement, compute_trial_balance,
                      parse_as_of_date)
from .sales import approve_sales_invoice, create_sales_invoice
from .vouchers import (cancel_voucher, create_voucher, is_balanced,
                       post_voucher, round2)
