from django.db import models

from billing.models.account import Account
from billing.models.base import AppendOnlyModel


class WalletTransaction(AppendOnlyModel):
    """
    Immutable record of one ledger entry for an account.

    ``amount`` is signed: positive values credit the account, negative values
    debit it. ``balance_after`` is the wallet balance once this row was
    applied. Card payments against an invoice are recorded with an
    ``EXTERNAL`` funding source: they appear in the account history but never
    moved the wallet balance.
    """

    class TransactionType(models.TextChoices):
        DEPOSIT = "DEPOSIT", "Deposit"
        WITHDRAWAL = "WITHDRAWAL", "Withdrawal"
        PAYMENT = "PAYMENT", "Payment"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"

    class FundingSource(models.TextChoices):
        WALLET = "WALLET", "Wallet"
        EXTERNAL = "EXTERNAL", "External"

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    transaction_type = models.CharField(
        max_length=10,
        choices=TransactionType.choices,
    )
    funding_source = models.CharField(
        max_length=8,
        choices=FundingSource.choices,
        default=FundingSource.WALLET,
    )
    reference_id = models.CharField(max_length=64, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    idempotency_key = models.UUIDField(
        unique=True,
        null=True,
        blank=True,
        editable=False,
        help_text="Client-generated UUID for idempotency.",
    )

    class Meta(AppendOnlyModel.Meta):
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["account", "created_at"], name="idx_wallet_tx_account"
            ),
            models.Index(fields=["reference_id"], name="idx_wallet_tx_reference"),
        ]

    def __str__(self):
        return (
            f"WalletTransaction {self.id} | {self.transaction_type} | "
            f"{self.amount:.2f}"
        )

    @classmethod
    def wallet_entries(cls, account):
        """Rows that moved the wallet balance of ``account``."""
        return cls.objects.filter(
            account=account, funding_source=cls.FundingSource.WALLET
        )
