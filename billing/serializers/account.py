from rest_framework import serializers

from billing.models import Account


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = (
            "uuid",
            "username",
            "email",
            "role",
            "wallet_balance",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("uuid", "wallet_balance", "created_at", "updated_at")
