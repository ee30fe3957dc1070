import logging

from celery import shared_task

from billing.services import InventoryService

logger = logging.getLogger(__name__)


@shared_task
def scan_low_stock_inventory():
    """
    Periodic task: report inventory items at or below their threshold.

    Runs via Celery Beat on LOW_STOCK_SCAN_INTERVAL_SECONDS.
    """
    items = list(InventoryService.low_stock_items())

    if not items:
        return {"low_stock": 0, "items": []}

    logger.warning("Found %d inventory item(s) at or below threshold.", len(items))
    for item in items:
        logger.warning(
            "Low stock: item=%d name=%s stock=%d threshold=%d unit=%s",
            item.pk,
            item.name,
            item.current_stock,
            item.low_stock_threshold,
            item.unit,
        )

    return {
        "low_stock": len(items),
        "items": [
            {"id": item.pk, "name": item.name, "current_stock": item.current_stock}
            for item in items
        ],
    }
