"""Customer DRF serializers (read only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    # The label orders carry when the selling side had no name on file.
    reference = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = [
            "id",
            "reference",
            "name",
            "phone",
            "address",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_reference(self, obj: Customer) -> str:
        return f"Customer #{obj.pk}"
