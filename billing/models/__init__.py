from billing.models.account import Account
from billing.models.audit import AuditLog
from billing.models.catalog import InventoryItem, Service
from billing.models.invoice import Invoice, InvoiceItem
from billing.models.wallet_transaction import WalletTransaction

__all__ = [
    "Account",
    "AuditLog",
    "InventoryItem",
    "Invoice",
    "InvoiceItem",
    "Service",
    "WalletTransaction",
]
