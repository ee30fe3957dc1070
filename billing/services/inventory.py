import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from billing.exceptions import (
    DuplicateRecord,
    InsufficientStock,
    InvalidAmount,
    InventoryItemNotFound,
)
from billing.models import AuditLog, InventoryItem
from billing.services.audit import record_audit
from billing.services.transactions import atomic_operation, require_transaction

logger = logging.getLogger(__name__)


def _lock_item(inventory_item_id) -> InventoryItem:
    try:
        return InventoryItem.objects.select_for_update().get(pk=inventory_item_id)
    except (InventoryItem.DoesNotExist, ValueError, TypeError):
        raise InventoryItemNotFound(inventory_item_id)


def _stock_quantity(value, allow_zero: bool) -> int:
    if isinstance(value, bool):
        raise InvalidAmount("Stock quantity must be a whole number.")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise InvalidAmount("Stock quantity must be a whole number.")
    if quantity != value and str(quantity) != str(value).strip():
        raise InvalidAmount("Stock quantity must be a whole number.")
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise InvalidAmount("Stock quantity must be a positive number.")
    return quantity


class InventoryService:
    """Stock reservation and administration for the hospital store."""

    @staticmethod
    def reserve_stock(inventory_item_id, quantity: int) -> InventoryItem:
        """
        Take ``quantity`` units out of stock for an invoice being generated.

        Must be called inside the caller's open transaction: the decrement
        only becomes visible when that transaction commits, and a later
        failure in the same invoice returns the stock automatically.

        Raises:
            InventoryItemNotFound: If the item row doesn't exist.
            InsufficientStock: If fewer than ``quantity`` units are on hand.
        """
        require_transaction()
        quantity = _stock_quantity(quantity, allow_zero=False)

        item = _lock_item(inventory_item_id)
        if item.current_stock < quantity:
            logger.warning(
                "Stock reservation refused: item=%d name=%s available=%d requested=%d",
                item.pk,
                item.name,
                item.current_stock,
                quantity,
            )
            raise InsufficientStock(item.name, item.current_stock, quantity)

        now = timezone.now()
        InventoryItem.objects.filter(pk=item.pk).update(
            current_stock=F("current_stock") - quantity, last_updated=now
        )
        item.refresh_from_db(fields=["current_stock", "last_updated"])

        logger.info(
            "Stock reserved: item=%d name=%s quantity=%d remaining=%d",
            item.pk,
            item.name,
            quantity,
            item.current_stock,
        )
        if item.is_low_stock:
            logger.warning(
                "Item %s is at or below its low-stock threshold (%d <= %d)",
                item.name,
                item.current_stock,
                item.low_stock_threshold,
            )
        return item

    @staticmethod
    @atomic_operation
    def set_stock(inventory_item_id, new_stock, actor=None, ip_address=None) -> InventoryItem:
        """
        Overwrite the on-hand quantity after a physical count or delivery.

        The STOCK_SET audit entry is written in the same transaction, so a
        stock change is never committed without it.
        """
        new_stock = _stock_quantity(new_stock, allow_zero=True)

        item = _lock_item(inventory_item_id)
        previous = item.current_stock
        item.current_stock = new_stock
        item.last_updated = timezone.now()
        item.save(update_fields=["current_stock", "last_updated", "updated_at"])

        logger.info(
            "Stock set: item=%d name=%s previous=%d new=%d",
            item.pk,
            item.name,
            previous,
            new_stock,
        )
        record_audit(
            AuditLog.Action.STOCK_SET, item.pk, actor=actor, ip_address=ip_address
        )
        return item

    @staticmethod
    def create_item(
        name: str, unit: str, current_stock=0, low_stock_threshold=10
    ) -> InventoryItem:
        current_stock = _stock_quantity(current_stock, allow_zero=True)
        low_stock_threshold = _stock_quantity(low_stock_threshold, allow_zero=True)
        try:
            with transaction.atomic():
                item = InventoryItem.objects.create(
                    name=name,
                    unit=unit,
                    current_stock=current_stock,
                    low_stock_threshold=low_stock_threshold,
                )
        except IntegrityError:
            raise DuplicateRecord(f'An inventory item named "{name}" already exists.')

        logger.info("Inventory item created: item=%d name=%s", item.pk, item.name)
        return item

    @staticmethod
    def low_stock_items():
        """Items at or below their threshold, emptiest first."""
        return InventoryItem.objects.filter(
            current_stock__lte=F("low_stock_threshold")
        ).order_by("current_stock", "name")
