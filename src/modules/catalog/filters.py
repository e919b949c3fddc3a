import django_filters
from django.conf import settings
from django.db.models import Q

from modules.catalog.models import Product


class ProductFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(method="filter_category")
    search = django_filters.CharFilter(method="filter_search")
    # query parameter names follow the storefront client
    lowStock = django_filters.BooleanFilter(method="filter_low_stock")  # noqa: N815
    featured = django_filters.BooleanFilter(field_name="is_featured")

    class Meta:
        model = Product
        fields = ["category", "search", "lowStock", "featured"]

    def filter_category(self, queryset, name, value):
        if not value or value == "all":
            return queryset
        return queryset.filter(category__slug=value)

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(description__icontains=value))

    def filter_low_stock(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(inventory__lte=settings.LOW_STOCK_THRESHOLD)
