from decimal import Decimal

from rest_framework import serializers

from .models import InventoryGroup, InventoryItem


class InventoryGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryGroup
        fields = ["id", "code", "name", "description", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class InventoryGroupInputSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class InventoryItemSerializer(serializers.ModelSerializer):
    group_code = serializers.CharField(source="group.code", read_only=True)
    group_name = serializers.CharField(source="group.name", read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            "id", "code", "name", "group", "group_code", "group_name",
            "unit", "purchase_price", "sale_price", "stock", "min_stock",
            "is_low_stock", "is_active", "created_at", "updated_at",
        ]
        read_only_fields = fields


class InventoryItemInputSerializer(serializers.Serializer):
    """Input for create (full) and update (partial=True)."""
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    group_id = serializers.IntegerField()
    unit = serializers.CharField(max_length=20)
    purchase_price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal("0.01"))
    sale_price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal("0.01"))
    stock = serializers.IntegerField(min_value=0, required=False, default=0)
    min_stock = serializers.IntegerField(min_value=0, required=False, default=0)
    is_active = serializers.BooleanField(required=False, default=True)


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
