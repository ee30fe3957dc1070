from django.urls import path

from billing.views import (
    AccountInvoiceListView,
    AccountTransactionListView,
    AdjustView,
    CreateAccountView,
    DepositView,
    GenerateInvoiceView,
    InventoryListView,
    InvoiceDetailView,
    LowStockListView,
    PayInvoiceView,
    PayInvoiceWithWalletView,
    RetrieveAccountView,
    ServiceListView,
    SetStockView,
    WithdrawView,
)

urlpatterns = [
    path("accounts/", CreateAccountView.as_view(), name="account-create"),
    path("accounts/<uuid:uuid>/", RetrieveAccountView.as_view(), name="account-detail"),
    path("accounts/<uuid:uuid>/deposit", DepositView.as_view(), name="account-deposit"),
    path("accounts/<uuid:uuid>/withdraw", WithdrawView.as_view(), name="account-withdraw"),
    path("accounts/<uuid:uuid>/adjust", AdjustView.as_view(), name="account-adjust"),
    path(
        "accounts/<uuid:uuid>/transactions/",
        AccountTransactionListView.as_view(),
        name="account-transactions",
    ),
    path(
        "accounts/<uuid:uuid>/invoices/",
        AccountInvoiceListView.as_view(),
        name="account-invoices",
    ),
    path("invoices/", GenerateInvoiceView.as_view(), name="invoice-generate"),
    path(
        "invoices/<int:invoice_id>/",
        InvoiceDetailView.as_view(),
        name="invoice-detail",
    ),
    path(
        "invoices/<int:invoice_id>/pay",
        PayInvoiceView.as_view(),
        name="invoice-pay",
    ),
    path(
        "invoices/<int:invoice_id>/pay-with-wallet",
        PayInvoiceWithWalletView.as_view(),
        name="invoice-pay-with-wallet",
    ),
    path("services/", ServiceListView.as_view(), name="service-list"),
    path("inventory/", InventoryListView.as_view(), name="inventory-list"),
    path(
        "inventory/low-stock/",
        LowStockListView.as_view(),
        name="inventory-low-stock",
    ),
    path(
        "inventory/<int:item_id>/stock",
        SetStockView.as_view(),
        name="inventory-set-stock",
    ),
]
