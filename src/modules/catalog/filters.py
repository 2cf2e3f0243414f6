import django_filters

from modules.catalog.models import Product


class ProductFilter(django_filters.FilterSet):
    title = django_filters.CharFilter(field_name="title", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    size = django_filters.CharFilter(method="filter_size")
    min_price = django_filters.NumberFilter(
        field_name="variants__price", lookup_expr="gte", distinct=True
    )
    max_price = django_filters.NumberFilter(
        field_name="variants__price", lookup_expr="lte", distinct=True
    )
    featured = django_filters.BooleanFilter(field_name="featured")
    active = django_filters.CharFilter(field_name="status", lookup_expr="iexact")

    class Meta:
        model = Product
        fields = [
            "title",
            "sku",
            "category",
            "size",
            "min_price",
            "max_price",
            "featured",
            "active",
        ]

    def filter_size(self, queryset, name, value):
        return queryset.filter(variants__size=value.strip().upper()).distinct()
