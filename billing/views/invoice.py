import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.serializers import (
    GenerateInvoiceSerializer,
    InvoiceSerializer,
    PaymentSerializer,
    WalletPaymentSerializer,
)
from billing.services import InvoiceGenerationService, InvoiceService
from billing.services.ledger import get_admin_account
from billing.utils import format_money
from billing.views.common import client_ip, idempotency_key

logger = logging.getLogger(__name__)


def _payment_response(payment):
    invoice = InvoiceService.get_invoice(payment.invoice.pk)
    return Response(
        {
            "invoice": InvoiceSerializer(invoice).data,
            "wallet_balance": format_money(payment.transaction.balance_after),
            "transaction_id": payment.transaction.id,
        },
        status=status.HTTP_200_OK,
    )


class GenerateInvoiceView(APIView):
    """
    POST /billing/invoices/: Bill catalog services to a patient.

    Request body: {"account_uuid", "due_date", "issued_by",
                   "items": [{"service_id", "quantity"}], "record_reference"?}
    Linked inventory is decremented in the same transaction; a shortage
    rejects the whole invoice with 409.
    """

    def post(self, request, *args, **kwargs):
        serializer = GenerateInvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = get_admin_account(serializer.validated_data["issued_by"])
        invoice = InvoiceGenerationService.generate(
            account_uuid=serializer.validated_data["account_uuid"],
            due_date=serializer.validated_data["due_date"],
            selections=serializer.selections,
            record_reference=serializer.validated_data["record_reference"],
            actor=admin,
            ip_address=client_ip(request),
        )
        invoice = InvoiceService.get_invoice(invoice.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class InvoiceDetailView(APIView):
    """
    GET /billing/invoices/<id>/: Invoice with its line items.

    Query params:
        - account: Owner UUID; when given, other accounts' invoices are hidden.
    """

    def get(self, request, invoice_id, *args, **kwargs):
        invoice = InvoiceService.get_invoice(
            invoice_id, account_uuid=request.query_params.get("account")
        )
        return Response(InvoiceSerializer(invoice).data)


class PayInvoiceView(APIView):
    """
    POST /billing/invoices/<id>/pay: Apply a confirmed card payment.

    Request body: {"account_uuid", "amount"}
    Optional header: Idempotency-Key: <uuid>
    """

    def post(self, request, invoice_id, *args, **kwargs):
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = InvoiceService.apply_payment(
            invoice_id=invoice_id,
            account_uuid=serializer.validated_data["account_uuid"],
            amount=serializer.validated_data["amount"],
            idempotency_key=idempotency_key(request),
        )
        return _payment_response(payment)


class PayInvoiceWithWalletView(APIView):
    """
    POST /billing/invoices/<id>/pay-with-wallet: Settle in full from the wallet.

    Request body: {"account_uuid", "outstanding_balance"?}
    """

    def post(self, request, invoice_id, *args, **kwargs):
        serializer = WalletPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = InvoiceService.pay_invoice_from_wallet(
            invoice_id=invoice_id,
            account_uuid=serializer.validated_data["account_uuid"],
            outstanding_amount=serializer.validated_data.get("outstanding_balance"),
        )
        return _payment_response(payment)
