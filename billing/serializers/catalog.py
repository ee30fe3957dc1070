from decimal import Decimal

from rest_framework import serializers

from billing.models import InventoryItem, Service


class InventoryItemSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = (
            "id",
            "name",
            "unit",
            "current_stock",
            "low_stock_threshold",
            "is_low_stock",
            "last_updated",
        )
        read_only_fields = ("id", "is_low_stock", "last_updated")


class SetStockSerializer(serializers.Serializer):
    new_stock = serializers.IntegerField(min_value=0)
    actor_uuid = serializers.UUIDField()


class ServiceSerializer(serializers.ModelSerializer):
    linked_inventory_item = serializers.PrimaryKeyRelatedField(
        queryset=InventoryItem.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Service
        fields = (
            "id",
            "name",
            "category",
            "unit_cost",
            "description",
            "is_active",
            "linked_inventory_item",
        )
        read_only_fields = ("id",)
        extra_kwargs = {"unit_cost": {"min_value": Decimal("0.00")}}
