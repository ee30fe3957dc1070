from billing.services.audit import record_audit
from billing.services.inventory import InventoryService
from billing.services.invoice import InvoicePayment, InvoiceService, LineItem
from billing.services.invoicing import InvoiceGenerationService
from billing.services.ledger import LedgerService
from billing.services.transactions import atomic_operation, require_transaction

__all__ = [
    "InventoryService",
    "InvoiceGenerationService",
    "InvoicePayment",
    "InvoiceService",
    "LedgerService",
    "LineItem",
    "atomic_operation",
    "record_audit",
    "require_transaction",
]
