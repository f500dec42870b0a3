from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from .commands import (
    create_group,
    create_item,
    delete_group,
    delete_item,
    update_group,
    update_item,
    update_stock,
)
from .models import InventoryGroup, InventoryItem
from .serializers import (
    InventoryGroupInputSerializer,
    InventoryGroupSerializer,
    InventoryItemInputSerializer,
    InventoryItemSerializer,
    StockUpdateSerializer,
)


def _fail(result):
    return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Groups
# =============================================================================

class InventoryGroupListCreateView(APIView):
    """
    GET /api/inventory/groups/
    POST /api/inventory/groups/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "inventory.view")
        return Response(InventoryGroupSerializer(InventoryGroup.objects.all(), many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = InventoryGroupInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_group(actor, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(InventoryGroupSerializer(result.data).data, status=status.HTTP_201_CREATED)


class InventoryGroupDetailView(APIView):
    """GET/PATCH/DELETE /api/inventory/groups/<pk>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "inventory.view")
        return Response(InventoryGroupSerializer(get_object_or_404(InventoryGroup, pk=pk)).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(InventoryGroup, pk=pk)

        serializer = InventoryGroupInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_group(actor, pk, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(InventoryGroupSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(InventoryGroup, pk=pk)

        result = delete_group(actor, pk)
        if not result.success:
            return _fail(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Items
# =============================================================================

class InventoryItemListCreateView(APIView):
    """
    GET /api/inventory/items/ -> list items
        ?group=<id>    items of one group
    POST /api/inventory/items/ -> create item
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "inventory.view")

        items = InventoryItem.objects.select_related("group")
        group_id = request.query_params.get("group")
        if group_id:
            if not group_id.isdigit():
                raise ValidationError({"group": f"Invalid group id: {group_id}"})
            items = items.filter(group_id=int(group_id))
        return Response(InventoryItemSerializer(items, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = InventoryItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_item(actor, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(InventoryItemSerializer(result.data).data, status=status.HTTP_201_CREATED)


class InventoryItemsByGroupView(APIView):
    """GET /api/inventory/groups/<pk>/items/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "inventory.view")

        group = get_object_or_404(InventoryGroup, pk=pk)
        items = group.items.select_related("group")
        return Response(InventoryItemSerializer(items, many=True).data)


class LowStockView(APIView):
    """GET /api/inventory/items/low-stock/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "inventory.view")

        items = InventoryItem.objects.low_stock().select_related("group")
        return Response(InventoryItemSerializer(items, many=True).data)


class InventoryItemDetailView(APIView):
    """GET/PATCH/DELETE /api/inventory/items/<pk>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "inventory.view")
        item = get_object_or_404(InventoryItem.objects.select_related("group"), pk=pk)
        return Response(InventoryItemSerializer(item).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(InventoryItem, pk=pk)

        serializer = InventoryItemInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_item(actor, pk, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(InventoryItemSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(InventoryItem, pk=pk)

        result = delete_item(actor, pk)
        if not result.success:
            return _fail(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class InventoryStockView(APIView):
    """POST /api/inventory/items/<pk>/stock/ -> set on-hand quantity"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(InventoryItem, pk=pk)

        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_stock(actor, pk, serializer.validated_data["quantity"])
        if not result.success:
            return _fail(result)
        return Response(InventoryItemSerializer(result.data).data)
