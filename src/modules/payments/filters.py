import django_filters

from modules.payments.models import Payment


class PaymentFilter(django_filters.FilterSet):
    order = django_filters.NumberFilter(field_name="order_id")
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    collected_by = django_filters.CharFilter(field_name="collected_by")
    collected_after = django_filters.DateTimeFilter(
        field_name="collected_at", lookup_expr="gte"
    )
    collected_before = django_filters.DateTimeFilter(
        field_name="collected_at", lookup_expr="lte"
    )

    class Meta:
        model = Payment
        fields = [
            "order",
            "status",
            "method",
            "collected_by",
            "collected_after",
            "collected_before",
        ]
