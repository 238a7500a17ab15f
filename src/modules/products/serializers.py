"""Product DRF serializers (read only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "name_en",
            "display_name",
            "price",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
