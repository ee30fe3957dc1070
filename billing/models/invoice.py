from decimal import Decimal

from django.db import models

from billing.models.account import Account
from billing.models.base import AppendOnlyModel, BaseModel


class Invoice(BaseModel):
    """
    A bill issued to an account.

    Invoices are inserted with a zero total and finalized once their line
    items are written, inside the same database transaction. ``amount_paid``
    only ever grows, so once an invoice is PAID it stays PAID.
    """

    class Status(models.TextChoices):
        PARTIAL = "PARTIAL", "Pending/Partial"
        PAID = "PAID", "Paid"

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    record_reference = models.CharField(max_length=64, blank=True, default="")
    due_date = models.DateField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PARTIAL,
    )

    class Meta(BaseModel.Meta):
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_paid__lte=models.F("total_amount")),
                name="invoice_paid_within_total",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "status"], name="idx_invoice_account"),
        ]

    def __str__(self):
        return f"Invoice #{self.id} | {self.total_amount:.2f} | {self.status}"

    @staticmethod
    def derive_status(total_amount: Decimal, amount_paid: Decimal) -> str:
        """PAID once the paid cents reach the total, PARTIAL otherwise."""
        if amount_paid >= total_amount:
            return Invoice.Status.PAID
        return Invoice.Status.PARTIAL

    @property
    def outstanding_balance(self) -> Decimal:
        return self.total_amount - self.amount_paid


class InvoiceItem(AppendOnlyModel):
    """
    One billed service on an invoice.

    Name and unit cost are copies taken from the catalog when the invoice was
    generated; later catalog edits must not change issued invoices.
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="items",
    )
    service_name = models.CharField(max_length=150)
    cost_per_unit = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()

    class Meta(AppendOnlyModel.Meta):
        ordering = ["id"]

    def __str__(self):
        return f"{self.service_name} x{self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return self.cost_per_unit * self.quantity
