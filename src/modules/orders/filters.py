import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    delivery_option = django_filters.CharFilter(
        field_name="delivery_option", lookup_expr="iexact"
    )
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    delivery_status = django_filters.CharFilter(
        field_name="delivery_status", lookup_expr="iexact"
    )
    assigned_driver = django_filters.CharFilter(field_name="assigned_driver")
    unassigned = django_filters.BooleanFilter(
        field_name="assigned_driver", lookup_expr="isnull"
    )
    customer = django_filters.NumberFilter(field_name="customer_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "delivery_option",
            "status",
            "delivery_status",
            "assigned_driver",
            "unassigned",
            "is_paid",
            "is_delivered",
            "customer",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
