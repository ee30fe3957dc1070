import logging

from rest_framework import status
from rest_framework.generics import ListAPIView, ListCreateAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.models import InventoryItem, Service
from billing.serializers import (
    InventoryItemSerializer,
    ServiceSerializer,
    SetStockSerializer,
)
from billing.services import InventoryService
from billing.services.ledger import get_admin_account
from billing.views.common import client_ip

logger = logging.getLogger(__name__)


class ServiceListView(ListCreateAPIView):
    """
    GET/POST /billing/services/: Service catalog.

    Query params:
        - active: "1" to list only services offered to patients.
    """

    serializer_class = ServiceSerializer

    def get_queryset(self):
        queryset = Service.objects.select_related("linked_inventory_item")
        if self.request.query_params.get("active") in ("1", "true", "yes"):
            queryset = queryset.filter(is_active=True)
        return queryset.order_by("category", "name")


class InventoryListView(ListCreateAPIView):
    """GET/POST /billing/inventory/: Store items, lowest stock first."""

    serializer_class = InventoryItemSerializer
    queryset = InventoryItem.objects.order_by("current_stock", "name")

    def perform_create(self, serializer):
        serializer.instance = InventoryService.create_item(**serializer.validated_data)


class LowStockListView(ListAPIView):
    """GET /billing/inventory/low-stock/: Items at or below their threshold."""

    serializer_class = InventoryItemSerializer

    def get_queryset(self):
        return InventoryService.low_stock_items()


class SetStockView(APIView):
    """
    POST /billing/inventory/<id>/stock: Overwrite the on-hand quantity.

    Request body: {"new_stock": <non-negative integer>, "actor_uuid": "<admin uuid>"}
    """

    def post(self, request, item_id, *args, **kwargs):
        serializer = SetStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = get_admin_account(serializer.validated_data["actor_uuid"])
        item = InventoryService.set_stock(
            item_id,
            serializer.validated_data["new_stock"],
            actor=admin,
            ip_address=client_ip(request),
        )
        return Response(InventoryItemSerializer(item).data, status=status.HTTP_200_OK)
