import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """
    Base class for every failure raised by the billing services.

    Each subclass carries a stable ``code`` and the HTTP status the API layer
    should answer with. The message is meant to be shown to the user as-is.
    """

    code = "billing_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The billing operation failed."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAmount(BillingError):
    code = "invalid_amount"
    default_message = "Amount must be a positive number."


class InsufficientFunds(BillingError):
    code = "insufficient_funds"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, balance=None, requested=None, message: str = None):
        self.balance = balance
        self.requested = requested
        if message is None:
            message = "Insufficient funds in the wallet."
            if balance is not None and requested is not None:
                message = (
                    f"Insufficient funds in the wallet: balance is {balance:.2f}, "
                    f"{requested:.2f} was requested."
                )
        super().__init__(message)


class InsufficientStock(BillingError):
    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, item_name: str, available: int, requested: int):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f'Insufficient stock for "{item_name}". Only {available} units left, '
            f"but {requested} were requested."
        )


class InventoryItemNotFound(BillingError):
    code = "inventory_item_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, item_id=None):
        self.item_id = item_id
        super().__init__(f"Linked inventory item (ID: {item_id}) not found.")


class AccountNotFound(BillingError):
    code = "account_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Account not found."


class InvoiceNotFound(BillingError):
    code = "invoice_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Invoice not found."


class Unauthorized(BillingError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invoice not found or unauthorized access."


class InvalidPaymentAmount(BillingError):
    code = "invalid_payment_amount"
    default_message = (
        "Invalid payment amount. Amount must be positive and not exceed "
        "the outstanding balance."
    )


class InvalidInvoice(BillingError):
    code = "invalid_invoice"
    default_message = "An invoice needs at least one service line item."


class DuplicateRecord(BillingError):
    code = "duplicate_record"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A record with that name already exists."


class ResourceBusy(BillingError):
    """Raised when a row lock could not be acquired in time. Safe to retry."""

    code = "resource_busy"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The record is busy with another operation. Please retry."


def api_exception_handler(exc, context):
    """Render billing errors as ``{"error": {"code", "message"}}`` responses."""
    if isinstance(exc, BillingError):
        return Response(
            {"error": {"code": exc.code, "message": exc.message}},
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.error("Unhandled API exception: %s", exc)
    return response
