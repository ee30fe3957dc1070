from billing.views.account import (
    AccountInvoiceListView,
    AccountTransactionListView,
    CreateAccountView,
    RetrieveAccountView,
)
from billing.views.catalog import (
    InventoryListView,
    LowStockListView,
    ServiceListView,
    SetStockView,
)
from billing.views.invoice import (
    GenerateInvoiceView,
    InvoiceDetailView,
    PayInvoiceView,
    PayInvoiceWithWalletView,
)
from billing.views.wallet import AdjustView, DepositView, WithdrawView

__all__ = [
    "AccountInvoiceListView",
    "AccountTransactionListView",
    "AdjustView",
    "CreateAccountView",
    "DepositView",
    "GenerateInvoiceView",
    "InventoryListView",
    "InvoiceDetailView",
    "LowStockListView",
    "PayInvoiceView",
    "PayInvoiceWithWalletView",
    "RetrieveAccountView",
    "ServiceListView",
    "SetStockView",
    "WithdrawView",
]
