from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("health/", views.health_view, name="health"),
    path("vouchers/", views.voucher_list_view, name="voucher-list"),
    path(
        "vouchers/<str:voucher_number>/",
        views.voucher_detail_view,
        name="voucher-detail",
    ),
    path(
        "reports/balance-sheet/",
        views.balance_sheet_view,
        name="balance-sheet",
    ),
    path(
        "reports/trial-balance/",
        views.trial_balance_view,
        name="trial-balance",
    ),
    path(
        "reports/income-statement/",
        views.income_statement_view,
        name="income-statement",
    ),
    path(
        "reports/general-ledger/",
        views.general_ledger_view,
        name="general-ledger",
    ),
]
