from django.db import models

from billing.models.account import Account
from billing.models.base import AppendOnlyModel


class AuditLog(AppendOnlyModel):
    """Who did what to which record, for administrative billing actions."""

    class Action(models.TextChoices):
        ADMIN_WALLET_ADJUSTMENT = "ADMIN_WALLET_ADJUSTMENT", "Admin wallet adjustment"
        INVOICE_GENERATED = "INVOICE_GENERATED", "Invoice generated"
        STOCK_SET = "STOCK_SET", "Stock set"

    actor = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    actor_label = models.CharField(max_length=150, blank=True, default="")
    action_type = models.CharField(max_length=32, choices=Action.choices)
    target_id = models.CharField(max_length=64)
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    class Meta(AppendOnlyModel.Meta):
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.action_type} on {self.target_id} by {self.actor_label or '-'}"
