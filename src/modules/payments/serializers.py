"""Payment DRF serializers (output).

Input is validated by ``CreatePaymentDTO`` (Pydantic).
"""

from __future__ import annotations

from rest_framework import serializers

from modules.payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "amount",
            "collected_by",
            "method",
            "status",
            "collected_at",
            "paid_at",
            "customer_name",
            "order_total",
            "voided_at",
            "void_reason",
            "created_at",
        ]
        read_only_fields = fields
