import logging
from datetime import date
from typing import Iterable, List, Tuple

from billing.exceptions import InvalidInvoice
from billing.models import AuditLog, Invoice, Service
from billing.services.audit import record_audit
from billing.services.invoice import (
    add_line_item,
    finalize_invoice,
    open_invoice,
)
from billing.services.ledger import get_account
from billing.services.inventory import InventoryService
from billing.services.transactions import atomic_operation
from billing.utils import ZERO

logger = logging.getLogger(__name__)


def normalize_selections(selections) -> List[Tuple[int, int]]:
    """
    Turn ``(service_id, quantity)`` pairs from a form into integers.

    A missing or blank quantity means one unit.

    Raises:
        InvalidInvoice: If there is no selection, or an id or quantity is not
            a positive whole number.
    """
    normalized = []
    for service_id, quantity in selections or ():
        if quantity is None or quantity == "":
            quantity = 1
        try:
            service_id = int(service_id)
            quantity = int(quantity)
        except (TypeError, ValueError):
            raise InvalidInvoice("Service ids and quantities must be whole numbers.")
        if quantity < 1:
            raise InvalidInvoice("Each service quantity must be at least 1.")
        normalized.append((service_id, quantity))

    if not normalized:
        raise InvalidInvoice("At least one service is required.")
    return normalized


class InvoiceGenerationService:
    """
    Admin invoice generation from catalog services.

    The invoice, its line items and every inventory decrement they cause are
    one transaction. If any linked item is missing or short on stock, nothing
    is written: no invoice, no line items, no stock change.
    """

    @staticmethod
    def generate(
        account_uuid,
        due_date: date,
        selections: Iterable[Tuple[int, int]],
        record_reference: str = "",
        actor=None,
        ip_address: str = None,
    ) -> Invoice:
        """
        Generate an invoice for the selected catalog services.

        Args:
            account_uuid: UUID of the patient account being billed.
            due_date: Payment due date.
            selections: ``(service_id, quantity)`` pairs, billed in order.
            record_reference: Optional medical record the bill relates to.
            actor: Admin Account issuing the invoice, for the audit log.
            ip_address: Client address, for the audit log.

        Raises:
            InvalidInvoice: If the selection is empty or malformed.
            AccountNotFound: If the patient account doesn't exist.
            InsufficientStock: If a linked inventory item is short.
            InventoryItemNotFound: If a linked inventory item is gone.
        """
        selections = normalize_selections(selections)
        return _generate(
            account_uuid, due_date, selections, record_reference, actor, ip_address
        )


@atomic_operation
def _generate(account_uuid, due_date, selections, record_reference, actor, ip_address):
    account = get_account(account_uuid)
    services = Service.objects.in_bulk([service_id for service_id, _ in selections])

    invoice = open_invoice(account, due_date, record_reference)

    total = ZERO
    lines = 0
    for service_id, quantity in selections:
        service = services.get(service_id)
        if service is None:
            logger.warning(
                "Skipping unknown service on invoice %d: service=%d",
                invoice.pk,
                service_id,
            )
            continue

        item = add_line_item(invoice, service.name, service.unit_cost, quantity)
        total += item.line_total
        lines += 1

        if service.linked_inventory_item_id:
            InventoryService.reserve_stock(service.linked_inventory_item_id, quantity)

    finalize_invoice(invoice, total)
    record_audit(
        AuditLog.Action.INVOICE_GENERATED,
        invoice.pk,
        actor=actor,
        ip_address=ip_address,
    )

    logger.info(
        "Invoice generated: invoice=%d account=%s lines=%d total=%s",
        invoice.pk,
        account.uuid,
        lines,
        invoice.total_amount,
    )
    return invoice
