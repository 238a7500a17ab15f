"""Order DRF serializers (output).

Input for partial updates is validated by ``UpdateOrderDTO`` (Pydantic);
these serializers only shape the responses.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatusHistory


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    product_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields

    def get_product_name(self, obj: OrderItem) -> str:
        return obj.product.display_name


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "old_delivery_status",
            "new_delivery_status",
            "changed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    customer_name = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer",
            "customer_name",
            "delivery_option",
            "status",
            "delivery_status",
            "assigned_driver",
            "delivery_start_time",
            "delivery_end_time",
            "is_delivered",
            "is_paid",
            "paid_at",
            "payment_id",
            "total",
            "delivery_address",
            "customer_phone",
            "notes",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj: Order) -> Optional[str]:
        return obj.customer_display or None


class OrderDetailSerializer(OrderSerializer):
    """Order with its status history (detail and update responses)."""

    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["status_history"]
        read_only_fields = fields
