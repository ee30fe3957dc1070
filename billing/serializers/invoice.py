from decimal import Decimal

from rest_framework import serializers

from billing.models import Invoice, InvoiceItem
from billing.serializers.wallet import MONEY


class InvoiceItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(read_only=True, **MONEY)

    class Meta:
        model = InvoiceItem
        fields = ("id", "service_name", "cost_per_unit", "quantity", "line_total")
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    account_uuid = serializers.UUIDField(source="account.uuid", read_only=True)
    outstanding_balance = serializers.DecimalField(read_only=True, **MONEY)
    items = InvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = (
            "id",
            "account_uuid",
            "record_reference",
            "due_date",
            "total_amount",
            "amount_paid",
            "outstanding_balance",
            "status",
            "items",
            "created_at",
        )
        read_only_fields = fields


class ServiceSelectionSerializer(serializers.Serializer):
    service_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)


class GenerateInvoiceSerializer(serializers.Serializer):
    """Validates the admin invoice form: a patient, a due date and services."""

    account_uuid = serializers.UUIDField()
    due_date = serializers.DateField()
    record_reference = serializers.CharField(
        max_length=64, required=False, allow_blank=True, default=""
    )
    items = ServiceSelectionSerializer(many=True, allow_empty=False)
    issued_by = serializers.UUIDField()

    @property
    def selections(self):
        return [
            (item["service_id"], item["quantity"])
            for item in self.validated_data["items"]
        ]


class PaymentSerializer(serializers.Serializer):
    """Validates a confirmed card payment against an invoice."""

    account_uuid = serializers.UUIDField()
    amount = serializers.DecimalField(min_value=Decimal("0.01"), **MONEY)


class WalletPaymentSerializer(serializers.Serializer):
    account_uuid = serializers.UUIDField()
    outstanding_balance = serializers.DecimalField(
        required=False, min_value=Decimal("0.01"), **MONEY
    )
