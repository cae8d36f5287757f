"""FilterSet definitions for the property listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Property


class PropertyFilterSet(django_filters.FilterSet):
    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    price_min = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price_per_night", lookup_expr="lte")
    guests = django_filters.NumberFilter(field_name="max_guests", lookup_expr="gte")

    class Meta:
        model = Property
        fields = ["city", "is_active"]
