import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple

from django.core.exceptions import ValidationError

from billing.exceptions import (
    InvalidAmount,
    InvalidInvoice,
    InvalidPaymentAmount,
    InvoiceNotFound,
    Unauthorized,
)
from billing.models import Account, Invoice, InvoiceItem, WalletTransaction
from billing.services.ledger import LedgerService, get_account, lock_account
from billing.services.transactions import atomic_operation
from billing.utils import MAX_AMOUNT, ZERO, positive_amount, to_money

logger = logging.getLogger(__name__)


class LineItem(NamedTuple):
    """A priced line to bill, already copied out of the catalog."""

    service_name: str
    cost_per_unit: Decimal
    quantity: int


class InvoicePayment(NamedTuple):
    invoice: Invoice
    transaction: WalletTransaction


def invoice_reference(invoice_id) -> str:
    return f"invoice_{invoice_id}"


def open_invoice(account: Account, due_date: date, record_reference: str = "") -> Invoice:
    """Insert an invoice with a zero placeholder total."""
    return Invoice.objects.create(
        account=account,
        due_date=due_date,
        record_reference=record_reference or "",
        total_amount=ZERO,
    )


def add_line_item(invoice: Invoice, service_name: str, cost_per_unit, quantity: int) -> InvoiceItem:
    cost_per_unit = to_money(cost_per_unit)
    if cost_per_unit < ZERO:
        raise InvalidAmount(f'Cost for "{service_name}" cannot be negative.')
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInvoice(f'Quantity for "{service_name}" must be at least 1.')

    return InvoiceItem.objects.create(
        invoice=invoice,
        service_name=service_name,
        cost_per_unit=cost_per_unit,
        quantity=quantity,
    )


def finalize_invoice(invoice: Invoice, total_amount: Decimal) -> Invoice:
    if total_amount > MAX_AMOUNT:
        raise InvalidAmount(f"An invoice total cannot exceed {MAX_AMOUNT}.")
    invoice.total_amount = total_amount
    invoice.status = Invoice.derive_status(total_amount, invoice.amount_paid)
    invoice.save(update_fields=["total_amount", "status", "updated_at"])
    return invoice


def _lock_invoice(invoice_id) -> Invoice:
    try:
        return Invoice.objects.select_for_update().get(pk=invoice_id)
    except (Invoice.DoesNotExist, ValueError, TypeError):
        raise InvoiceNotFound(f"Invoice #{invoice_id} not found.")


def _lock_owned_invoice(invoice_id, account_uuid):
    # Invoice first, then account: the same order in every payment path.
    invoice = _lock_invoice(invoice_id)
    account = lock_account(account_uuid)
    if invoice.account_id != account.pk:
        logger.warning(
            "Invoice access refused: invoice=%d owner=%d caller=%s",
            invoice.pk,
            invoice.account_id,
            account.uuid,
        )
        raise Unauthorized()
    return invoice, account


class InvoiceService:
    """
    Invoice creation and payment application.

    Payments lock the invoice row with select_for_update() and re-read
    ``total_amount``/``amount_paid`` under that lock, so two payments racing
    on the same invoice can never overpay it. Status is always recomputed
    from exact cent amounts through Invoice.derive_status().
    """

    @staticmethod
    @atomic_operation
    def create_invoice(
        account_uuid,
        due_date: date,
        line_items: Iterable[LineItem],
        record_reference: str = "",
    ) -> Invoice:
        """
        Bill already-priced line items to an account.

        Raises:
            AccountNotFound: If the account doesn't exist.
            InvalidInvoice: If there are no line items or a quantity is < 1.
            InvalidAmount: If a unit cost is negative or not a number.
        """
        line_items = list(line_items)
        if not line_items:
            raise InvalidInvoice()

        account = get_account(account_uuid)
        invoice = open_invoice(account, due_date, record_reference)

        total = ZERO
        for line in line_items:
            item = add_line_item(
                invoice, line.service_name, line.cost_per_unit, line.quantity
            )
            total += item.line_total

        finalize_invoice(invoice, total)
        logger.info(
            "Invoice created: invoice=%d account=%s items=%d total=%s",
            invoice.pk,
            account.uuid,
            len(line_items),
            invoice.total_amount,
        )
        return invoice

    @staticmethod
    @atomic_operation
    def apply_payment(
        invoice_id, account_uuid, amount, idempotency_key: str = None
    ) -> InvoicePayment:
        """
        Apply an externally confirmed (card) payment to an invoice.

        The payment may be partial. The wallet balance is not touched; the
        payment is still written to the account's transaction history.

        Raises:
            InvalidPaymentAmount: If amount is not positive or exceeds the
                outstanding balance.
            InvoiceNotFound: If the invoice doesn't exist.
            Unauthorized: If the invoice belongs to another account.
        """
        amount = positive_amount(amount, error_class=InvalidPaymentAmount)
        invoice, account = _lock_owned_invoice(invoice_id, account_uuid)

        if idempotency_key:
            existing_tx = WalletTransaction.objects.filter(
                idempotency_key=idempotency_key
            ).first()
            if existing_tx:
                if existing_tx.reference_id != invoice_reference(invoice.pk):
                    logger.warning(
                        "Idempotency conflict: key=%s existing_reference=%s invoice=%d",
                        idempotency_key,
                        existing_tx.reference_id,
                        invoice.pk,
                    )
                logger.info(
                    "Idempotent invoice payment: key=%s invoice=%d tx=%d",
                    idempotency_key,
                    invoice.pk,
                    existing_tx.id,
                )
                return InvoicePayment(invoice, existing_tx)

        outstanding = invoice.outstanding_balance
        if amount > outstanding:
            logger.warning(
                "Payment refused: invoice=%d amount=%s outstanding=%s",
                invoice.pk,
                amount,
                outstanding,
            )
            raise InvalidPaymentAmount(
                f"Payment of {amount:.2f} exceeds the outstanding balance of "
                f"{outstanding:.2f}."
            )

        invoice.amount_paid += amount
        invoice.status = Invoice.derive_status(invoice.total_amount, invoice.amount_paid)
        invoice.save(update_fields=["amount_paid", "status", "updated_at"])

        tx = WalletTransaction.objects.create(
            account=account,
            amount=-amount,
            transaction_type=WalletTransaction.TransactionType.PAYMENT,
            funding_source=WalletTransaction.FundingSource.EXTERNAL,
            reference_id=invoice_reference(invoice.pk),
            description=f"Card payment for Invoice #{invoice.pk}",
            balance_after=account.wallet_balance,
            idempotency_key=idempotency_key,
        )

        logger.info(
            "Payment applied: invoice=%d amount=%s paid=%s status=%s tx=%d",
            invoice.pk,
            amount,
            invoice.amount_paid,
            invoice.status,
            tx.id,
        )
        return InvoicePayment(invoice, tx)

    @staticmethod
    @atomic_operation
    def pay_invoice_from_wallet(
        invoice_id, account_uuid, outstanding_amount=None
    ) -> InvoicePayment:
        """
        Settle the whole outstanding balance of an invoice from the wallet.

        ``outstanding_amount`` is the balance the caller showed the user. When
        given, it must still match the invoice, otherwise the payment is
        refused rather than charging a different sum.

        Raises:
            Unauthorized: If the caller is an admin or doesn't own the invoice.
            InvalidPaymentAmount: If the invoice is already paid or the
                outstanding balance changed.
            InsufficientFunds: If the wallet doesn't cover the balance.
        """
        invoice, account = _lock_owned_invoice(invoice_id, account_uuid)
        if account.is_admin:
            raise Unauthorized("Admins cannot pay invoices.")

        outstanding = invoice.outstanding_balance
        if invoice.status == Invoice.Status.PAID or outstanding <= ZERO:
            raise InvalidPaymentAmount(f"Invoice #{invoice.pk} is already paid.")

        if outstanding_amount is not None:
            expected = positive_amount(outstanding_amount, error_class=InvalidPaymentAmount)
            if expected != outstanding:
                raise InvalidPaymentAmount(
                    f"The outstanding balance is now {outstanding:.2f}; "
                    "please review the invoice and try again."
                )

        tx = LedgerService.pay_from_wallet(
            account.uuid,
            outstanding,
            reference_id=invoice_reference(invoice.pk),
            description=f"Payment for Invoice #{invoice.pk}",
        )

        invoice.amount_paid = invoice.total_amount
        invoice.status = Invoice.Status.PAID
        invoice.save(update_fields=["amount_paid", "status", "updated_at"])

        logger.info(
            "Invoice paid from wallet: invoice=%d account=%s amount=%s tx=%d",
            invoice.pk,
            account.uuid,
            outstanding,
            tx.id,
        )
        return InvoicePayment(invoice, tx)

    @staticmethod
    def get_invoice(invoice_id, account_uuid=None) -> Invoice:
        """Fetch an invoice with its items, scoped to ``account_uuid`` if given."""
        queryset = Invoice.objects.select_related("account").prefetch_related("items")
        if account_uuid is not None:
            queryset = queryset.filter(account__uuid=account_uuid)
        try:
            return queryset.get(pk=invoice_id)
        except (Invoice.DoesNotExist, ValidationError, ValueError, TypeError):
            raise InvoiceNotFound("Invoice not found or access denied.")

    @staticmethod
    def invoices_for(account_uuid):
        account = get_account(account_uuid)
        return account.invoices.order_by("-created_at", "-id")

