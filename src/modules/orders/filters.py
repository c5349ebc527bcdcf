import django_filters
from django.db.models import Q

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    user = django_filters.UUIDFilter(field_name="user_id")
    search = django_filters.CharFilter(method="filter_search")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["status", "user", "search", "start_date", "end_date"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(contact_email__icontains=value)
            | Q(contact_phone__icontains=value)
        )
