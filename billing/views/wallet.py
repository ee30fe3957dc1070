import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.models import AuditLog
from billing.serializers import (
    AccountSerializer,
    AdjustSerializer,
    DepositSerializer,
    WalletTransactionSerializer,
    WithdrawSerializer,
)
from billing.services import LedgerService, record_audit
from billing.services.ledger import get_admin_account
from billing.views.common import client_ip, idempotency_key

logger = logging.getLogger(__name__)


def _ledger_response(tx):
    return Response(
        {
            "account": AccountSerializer(tx.account).data,
            "transaction": WalletTransactionSerializer(tx).data,
        },
        status=status.HTTP_200_OK,
    )


class DepositView(APIView):
    """
    POST /billing/accounts/<uuid>/deposit: Credit the wallet.

    Request body: {"amount": "<positive decimal>"}
    Optional header: Idempotency-Key: <uuid>
    """

    def post(self, request, uuid, *args, **kwargs):
        serializer = DepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tx = LedgerService.deposit(
            account_uuid=uuid,
            amount=serializer.validated_data["amount"],
            idempotency_key=idempotency_key(request),
            description=serializer.validated_data.get("description"),
        )
        return _ledger_response(tx)


class WithdrawView(APIView):
    """
    POST /billing/accounts/<uuid>/withdraw: Debit the wallet.

    Request body: {"amount": "<positive decimal>"}
    Refused with 409 when the balance does not cover the amount.
    """

    def post(self, request, uuid, *args, **kwargs):
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tx = LedgerService.withdraw(
            account_uuid=uuid,
            amount=serializer.validated_data["amount"],
            description=serializer.validated_data.get("description"),
        )
        return _ledger_response(tx)


class AdjustView(APIView):
    """
    POST /billing/accounts/<uuid>/adjust: Admin balance correction.

    Request body: {"amount": "<decimal>", "action_type": "add"|"subtract",
                   "reason": "<text>", "actor_uuid": "<admin uuid>"}
    """

    def post(self, request, uuid, *args, **kwargs):
        serializer = AdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = get_admin_account(serializer.validated_data["actor_uuid"])
        tx = LedgerService.adjust(
            account_uuid=uuid,
            amount=serializer.signed_amount,
            reason=serializer.validated_data["reason"],
            actor_label=admin.username,
        )

        try:
            record_audit(
                AuditLog.Action.ADMIN_WALLET_ADJUSTMENT,
                tx.account.pk,
                actor=admin,
                ip_address=client_ip(request),
            )
        except DatabaseError:
            # The adjustment is already committed here.
            logger.exception("Audit log write failed for adjustment tx=%d", tx.id)

        return _ledger_response(tx)
