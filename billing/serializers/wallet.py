from decimal import Decimal

from rest_framework import serializers

MONEY = dict(max_digits=12, decimal_places=2)


class DepositSerializer(serializers.Serializer):
    """Validates deposit requests."""

    amount = serializers.DecimalField(min_value=Decimal("0.01"), **MONEY)
    description = serializers.CharField(max_length=255, required=False)


class WithdrawSerializer(serializers.Serializer):
    """Validates withdrawal requests."""

    amount = serializers.DecimalField(min_value=Decimal("0.01"), **MONEY)
    description = serializers.CharField(max_length=255, required=False)


class AdjustSerializer(serializers.Serializer):
    """
    Validates admin balance adjustments.

    ``amount`` is entered unsigned; ``action_type`` says whether it is added
    to or subtracted from the wallet.
    """

    ADD = "add"
    SUBTRACT = "subtract"

    amount = serializers.DecimalField(min_value=Decimal("0.01"), **MONEY)
    action_type = serializers.ChoiceField(choices=(ADD, SUBTRACT))
    reason = serializers.CharField(max_length=200)
    actor_uuid = serializers.UUIDField()

    @property
    def signed_amount(self) -> Decimal:
        amount = self.validated_data["amount"]
        if self.validated_data["action_type"] == self.SUBTRACT:
            return -amount
        return amount
