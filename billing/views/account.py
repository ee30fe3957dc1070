import logging

from django.conf import settings
from rest_framework.generics import CreateAPIView, ListAPIView, RetrieveAPIView

from billing.models import Account, WalletTransaction
from billing.serializers import (
    AccountSerializer,
    InvoiceSerializer,
    WalletTransactionSerializer,
)
from billing.services import InvoiceService

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = getattr(settings, "BILLING_RECENT_TRANSACTIONS_LIMIT", 10)


class CreateAccountView(CreateAPIView):
    """POST /billing/accounts/: Register an account with an empty wallet."""

    serializer_class = AccountSerializer


class RetrieveAccountView(RetrieveAPIView):
    """GET /billing/accounts/<uuid>/: Account details and wallet balance."""

    serializer_class = AccountSerializer
    queryset = Account.objects.all()
    lookup_field = "uuid"


class AccountTransactionListView(ListAPIView):
    """
    GET /billing/accounts/<uuid>/transactions/: Most recent ledger entries.

    Query params:
        - type: Filter by transaction type (DEPOSIT, WITHDRAWAL, PAYMENT, ADJUSTMENT)
        - limit: Number of entries, defaults to BILLING_RECENT_TRANSACTIONS_LIMIT
    """

    serializer_class = WalletTransactionSerializer

    def get_queryset(self):
        queryset = WalletTransaction.objects.filter(
            account__uuid=self.kwargs["uuid"]
        ).select_related("account")

        tx_type = self.request.query_params.get("type")
        if tx_type:
            queryset = queryset.filter(transaction_type=tx_type.upper())

        try:
            limit = int(self.request.query_params.get("limit", RECENT_TRANSACTIONS_LIMIT))
        except ValueError:
            limit = RECENT_TRANSACTIONS_LIMIT
        return queryset[: max(limit, 1)]


class AccountInvoiceListView(ListAPIView):
    """GET /billing/accounts/<uuid>/invoices/: Invoices billed to the account."""

    serializer_class = InvoiceSerializer

    def get_queryset(self):
        return InvoiceService.invoices_for(self.kwargs["uuid"]).prefetch_related(
            "items"
        )
