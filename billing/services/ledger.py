import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.db.models import F

from billing.exceptions import (
    AccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    Unauthorized,
)
from billing.models import Account, WalletTransaction
from billing.services.transactions import atomic_operation
from billing.utils import MAX_AMOUNT, ZERO, positive_amount, to_money

logger = logging.getLogger(__name__)


def get_account(account_uuid) -> Account:
    try:
        return Account.objects.get(uuid=account_uuid)
    except (Account.DoesNotExist, ValidationError):
        raise AccountNotFound(f"Account {account_uuid} not found.")


def get_admin_account(account_uuid) -> Account:
    """Resolve the account performing an administrative action."""
    account = get_account(account_uuid)
    if not account.is_admin:
        logger.warning("Admin action refused for non-admin account=%s", account.uuid)
        raise Unauthorized("Access denied. You must be an administrator.")
    return account


def lock_account(account_uuid) -> Account:
    """Fetch an account with a row-level lock held until the transaction ends."""
    try:
        return Account.objects.select_for_update().get(uuid=account_uuid)
    except (Account.DoesNotExist, ValidationError):
        raise AccountNotFound(f"Account {account_uuid} not found.")


def _apply_delta(account: Account, delta: Decimal) -> Decimal:
    # Callers hold the row lock taken by lock_account().
    if account.wallet_balance + delta > MAX_AMOUNT:
        logger.warning(
            "Credit refused (balance limit): account=%s balance=%s delta=%s",
            account.uuid,
            account.wallet_balance,
            delta,
        )
        raise InvalidAmount(f"The wallet balance cannot exceed {MAX_AMOUNT}.")
    Account.objects.filter(pk=account.pk).update(
        wallet_balance=F("wallet_balance") + delta
    )
    account.refresh_from_db(fields=["wallet_balance"])
    return account.wallet_balance


class LedgerService:
    """
    Wallet credit/debit primitives.

    Every method runs as a single transaction: the balance change and its
    WalletTransaction row are committed together or not at all. Debits lock
    the account row with select_for_update() before reading the balance, so
    two concurrent withdrawals cannot both spend the same money.
    """

    @staticmethod
    @atomic_operation
    def deposit(
        account_uuid, amount, idempotency_key: str = None, description: str = None
    ) -> WalletTransaction:
        """
        Credit ``amount`` to the account's wallet.

        Args:
            account_uuid: UUID of the account to credit.
            amount: Positive amount (decimal string, number or Decimal).
            idempotency_key: Optional UUID; a repeated key returns the
                original transaction and leaves the balance alone.
            description: Optional text stored on the transaction.

        Returns:
            The DEPOSIT WalletTransaction. ``balance_after`` is the new balance.

        Raises:
            InvalidAmount: If amount is not a positive number.
            AccountNotFound: If the account doesn't exist.
        """
        amount = positive_amount(amount)
        account = lock_account(account_uuid)

        if idempotency_key:
            existing_tx = WalletTransaction.objects.filter(
                idempotency_key=idempotency_key
            ).first()
            if existing_tx:
                if existing_tx.amount != amount or existing_tx.account_id != account.pk:
                    logger.warning(
                        "Idempotency conflict: key=%s existing_amount=%s new_amount=%s",
                        idempotency_key,
                        existing_tx.amount,
                        amount,
                    )
                logger.info(
                    "Idempotent deposit request: key=%s tx=%d",
                    idempotency_key,
                    existing_tx.id,
                )
                return existing_tx

        new_balance = _apply_delta(account, amount)
        tx = WalletTransaction.objects.create(
            account=account,
            amount=amount,
            transaction_type=WalletTransaction.TransactionType.DEPOSIT,
            description=description or "Online deposit via payment gateway.",
            balance_after=new_balance,
            idempotency_key=idempotency_key,
        )

        logger.info(
            "Deposit completed: account=%s amount=%s new_balance=%s tx=%d",
            account.uuid,
            amount,
            new_balance,
            tx.id,
        )
        return tx

    @staticmethod
    @atomic_operation
    def withdraw(account_uuid, amount, description: str = None) -> WalletTransaction:
        """
        Debit ``amount`` from the wallet if the balance covers it.

        Raises:
            InvalidAmount: If amount is not a positive number.
            AccountNotFound: If the account doesn't exist.
            InsufficientFunds: If amount exceeds the current balance.
        """
        amount = positive_amount(amount)
        return _debit(
            account_uuid,
            amount,
            WalletTransaction.TransactionType.WITHDRAWAL,
            description=description or "Funds withdrawn from wallet.",
        )

    @staticmethod
    @atomic_operation
    def pay_from_wallet(
        account_uuid, amount, reference_id: str, description: str
    ) -> WalletTransaction:
        """Debit ``amount`` as a PAYMENT towards ``reference_id``."""
        amount = positive_amount(amount)
        return _debit(
            account_uuid,
            amount,
            WalletTransaction.TransactionType.PAYMENT,
            description=description,
            reference_id=reference_id,
        )

    @staticmethod
    def adjust(account_uuid, amount, reason: str, actor_label: str) -> WalletTransaction:
        """
        Apply an administrative credit (positive) or debit (negative).

        There is no sufficiency check: admins may debit any amount the
        balance can absorb. The account check constraint still refuses a
        result below zero, reported as InsufficientFunds.
        """
        amount = to_money(amount)
        if amount == ZERO:
            raise InvalidAmount("Adjustment amount cannot be zero.")
        if not reason or not actor_label:
            raise InvalidAmount("An adjustment needs a reason and an actor.")

        try:
            return _adjust(account_uuid, amount, reason, actor_label)
        except IntegrityError as exc:
            logger.warning(
                "Adjustment refused by balance constraint: account=%s amount=%s",
                account_uuid,
                amount,
            )
            raise InsufficientFunds(
                message="Adjustment would make the wallet balance negative."
            ) from exc


@atomic_operation
def _adjust(account_uuid, amount: Decimal, reason: str, actor_label: str):
    account = lock_account(account_uuid)
    new_balance = _apply_delta(account, amount)
    tx = WalletTransaction.objects.create(
        account=account,
        amount=amount,
        transaction_type=WalletTransaction.TransactionType.ADJUSTMENT,
        reference_id=actor_label[:64],
        description=f"Admin Action ({reason})"[:255],
        balance_after=new_balance,
    )
    logger.info(
        "Adjustment completed: account=%s amount=%s new_balance=%s actor=%s tx=%d",
        account.uuid,
        amount,
        new_balance,
        actor_label,
        tx.id,
    )
    return tx


def _debit(
    account_uuid,
    amount: Decimal,
    transaction_type: str,
    description: str,
    reference_id: str = "",
) -> WalletTransaction:
    account = lock_account(account_uuid)

    if amount > account.wallet_balance:
        logger.warning(
            "Debit refused (insufficient funds): account=%s balance=%s amount=%s type=%s",
            account.uuid,
            account.wallet_balance,
            amount,
            transaction_type,
        )
        raise InsufficientFunds(balance=account.wallet_balance, requested=amount)

    new_balance = _apply_delta(account, -amount)
    tx = WalletTransaction.objects.create(
        account=account,
        amount=-amount,
        transaction_type=transaction_type,
        reference_id=reference_id,
        description=description,
        balance_after=new_balance,
    )

    logger.info(
        "Debit completed: account=%s type=%s amount=%s new_balance=%s tx=%d",
        account.uuid,
        transaction_type,
        amount,
        new_balance,
        tx.id,
    )
    return tx
