from django.db import models
from django.utils import timezone

from billing.models.base import BaseModel


class InventoryItem(BaseModel):
    """
    A stocked consumable (drug, dressing, test kit) in the hospital store.

    ``current_stock`` only changes through InventoryService: decremented by
    invoice generation under a row lock, or set explicitly by an admin.
    ``last_updated`` is stamped by those writes, which go through
    ``QuerySet.update()`` and therefore skip ``updated_at``.
    """

    name = models.CharField(max_length=150, unique=True)
    unit = models.CharField(max_length=30)
    current_stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=10)
    last_updated = models.DateTimeField(default=timezone.now)

    class Meta(BaseModel.Meta):
        ordering = ["current_stock", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(current_stock__gte=0),
                name="inventory_current_stock_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.current_stock} {self.unit})"

    @property
    def is_low_stock(self):
        return self.current_stock <= self.low_stock_threshold


class Service(BaseModel):
    """Billable catalog entry. Its price is copied onto invoice lines."""

    name = models.CharField(max_length=150, unique=True)
    category = models.CharField(max_length=100)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    linked_inventory_item = models.ForeignKey(
        InventoryItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="services",
    )

    class Meta(BaseModel.Meta):
        ordering = ["category", "name"]

    def __str__(self):
        return f"{self.name} ({self.unit_cost:.2f})"
