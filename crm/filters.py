"""
CRM Filters - Vitrine Backend API
django-filter FilterSets for leads, deals, transactions and interactions.
"""

from django.db import models
from django_filters import rest_framework as filters
from django_filters import CharFilter, ChoiceFilter, DateFilter, NumberFilter

from .models import Deal, Interaction, Lead, Transaction


class LeadFilter(filters.FilterSet):
    """
    Query parameters:
    - status, origin: exact choice
    - property: listing id
    - search: contact name, phone or e-mail (partial match)
    """

    status = ChoiceFilter(choices=Lead.STATUS_CHOICES)
    origin = ChoiceFilter(choices=Lead.ORIGIN_CHOICES)
    property = NumberFilter(field_name='property_id')
    search = CharFilter(method='filter_search')

    class Meta:
        model = Lead
        fields = ['status', 'origin', 'property', 'search']

    def filter_search(self, queryset, name, value):
        term = (value or '').strip()
        if not term:
            return queryset
        return queryset.filter(
            models.Q(contact_name__icontains=term)
            | models.Q(contact_phone__icontains=term)
            | models.Q(contact_email__icontains=term)
        )


class DealFilter(filters.FilterSet):

    status = ChoiceFilter(choices=Deal.STATUS_CHOICES)
    lead = NumberFilter(field_name='lead_id')
    property = NumberFilter(field_name='property_id')
    lead_origin = ChoiceFilter(field_name='lead__origin', choices=Lead.ORIGIN_CHOICES)

    class Meta:
        model = Deal
        fields = ['status', 'lead', 'property', 'lead_origin']


class TransactionFilter(filters.FilterSet):

    deal = NumberFilter(field_name='deal_id')
    date_from = DateFilter(field_name='date', lookup_expr='gte')
    date_to = DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = Transaction
        fields = ['deal', 'date_from', 'date_to']


class InteractionFilter(filters.FilterSet):

    lead = NumberFilter(field_name='lead_id')
    deal = NumberFilter(field_name='deal_id')
    type = ChoiceFilter(choices=Interaction.TYPE_CHOICES)

    class Meta:
        model = Interaction
        fields = ['lead', 'deal', 'type']
