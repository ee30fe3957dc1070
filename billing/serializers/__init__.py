from billing.serializers.account import AccountSerializer
from billing.serializers.catalog import (
    InventoryItemSerializer,
    ServiceSerializer,
    SetStockSerializer,
)
from billing.serializers.invoice import (
    GenerateInvoiceSerializer,
    InvoiceSerializer,
    PaymentSerializer,
    WalletPaymentSerializer,
)
from billing.serializers.transaction import WalletTransactionSerializer
from billing.serializers.wallet import (
    AdjustSerializer,
    DepositSerializer,
    WithdrawSerializer,
)

__all__ = [
    "AccountSerializer",
    "AdjustSerializer",
    "DepositSerializer",
    "GenerateInvoiceSerializer",
    "InventoryItemSerializer",
    "InvoiceSerializer",
    "PaymentSerializer",
    "ServiceSerializer",
    "SetStockSerializer",
    "WalletPaymentSerializer",
    "WalletTransactionSerializer",
    "WithdrawSerializer",
]
