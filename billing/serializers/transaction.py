from rest_framework import serializers

from billing.models import WalletTransaction


class WalletTransactionSerializer(serializers.ModelSerializer):
    """Read-only serializer for ledger entries."""

    account_uuid = serializers.UUIDField(source="account.uuid", read_only=True)

    class Meta:
        model = WalletTransaction
        fields = (
            "id",
            "account_uuid",
            "amount",
            "transaction_type",
            "funding_source",
            "reference_id",
            "description",
            "balance_after",
            "created_at",
        )
        read_only_fields = fields
