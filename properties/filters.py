"""
Properties Filters - Vitrine Backend API
Django REST Framework filters for the broker's own listing dashboard.

Mirrors the public portal pipeline (services.listing_pipeline) at the
database level:
- Free-text search over title, neighborhood and address
- Price range (min/max)
- Exact bedroom count ('all' disables the filter)
- Sort modes: newest, price-asc, price-desc, area-desc
"""

from decimal import Decimal

from django.db import models
from django.db.models.functions import Coalesce
from django_filters import rest_framework as filters
from django_filters import BooleanFilter, CharFilter, ChoiceFilter, NumberFilter

from services.listing_pipeline import SortMode, ExactBedrooms, parse_bedroom_filter

from .models import Property


SORT_CHOICES = [(mode.value, mode.value) for mode in SortMode]

# Newest first breaks ties for every sort mode
_TIE_BREAK = ['-created_at', '-id']


class PropertyFilter(filters.FilterSet):
    """
    Filtering and ordering for the broker's listings.

    Query parameters:
    - search: case-insensitive match on title, neighborhood or address
    - min_price / max_price: inclusive price bounds
    - bedrooms: exact count, or 'all'
    - sort: newest (default), price-asc, price-desc, area-desc
    - is_active: published or unpublished only
    """

    search = CharFilter(
        method='filter_search',
        help_text='Search title, neighborhood and address (partial match)'
    )

    min_price = NumberFilter(
        field_name='price',
        lookup_expr='gte',
        help_text='Minimum price'
    )

    max_price = NumberFilter(
        field_name='price',
        lookup_expr='lte',
        help_text='Maximum price'
    )

    bedrooms = CharFilter(
        method='filter_bedrooms',
        help_text="Exact bedroom count, or 'all'"
    )

    sort = ChoiceFilter(
        method='filter_sort',
        choices=SORT_CHOICES,
        help_text='Sort mode'
    )

    is_active = BooleanFilter(field_name='is_active')

    class Meta:
        model = Property
        fields = ['search', 'min_price', 'max_price', 'bedrooms', 'sort', 'is_active']

    @property
    def qs(self):
        queryset = super().qs
        # Default ordering when no sort was requested
        if not getattr(self.form, 'cleaned_data', {}).get('sort'):
            queryset = queryset.order_by(*_TIE_BREAK)
        return queryset

    def filter_search(self, queryset, name, value):
        """Match any of the three text fields"""
        term = (value or '').strip()
        if not term:
            return queryset

        return queryset.filter(
            models.Q(title__icontains=term)
            | models.Q(neighborhood__icontains=term)
            | models.Q(address__icontains=term)
        )

    def filter_bedrooms(self, queryset, name, value):
        bedroom_filter = parse_bedroom_filter(value)
        if isinstance(bedroom_filter, ExactBedrooms):
            return queryset.filter(bedrooms=bedroom_filter.count)
        return queryset

    def filter_sort(self, queryset, name, value):
        mode = SortMode.parse(value)

        if mode is SortMode.PRICE_ASC:
            return queryset.order_by('price', *_TIE_BREAK)
        if mode is SortMode.PRICE_DESC:
            return queryset.order_by('-price', *_TIE_BREAK)
        if mode is SortMode.AREA_DESC:
            return queryset.annotate(
                area_sort=Coalesce(
                    'area_m2',
                    models.Value(Decimal('0')),
                    output_field=models.DecimalField(max_digits=10, decimal_places=2),
                )
            ).order_by('-area_sort', *_TIE_BREAK)
        return queryset.order_by(*_TIE_BREAK)
