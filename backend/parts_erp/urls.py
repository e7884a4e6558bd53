from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    # Chart of accounts, vouchers and business documents are maintained here
    path("admin/", admin.site.urls),
    # Read-only JSON surface used by reports and the smoke test
    path("api/", include("ledger_core.urls")),
]
