"""
API Serializers for the Vitrine CRM.

Money fields travel as integer centavos; the *_display fields carry the
pt-BR formatted versions for the dashboard.
"""

from django.utils import timezone
from rest_framework import serializers

from services.formatters import (
    days_between, format_currency, format_date, format_datetime,
    format_phone, normalize_phone, parse_currency,
)

from .models import ActivityLog, Deal, Interaction, Lead, Transaction


class OwnedRelationMixin:
    """Rejects related objects that belong to another broker."""

    def _check_owner(self, value):
        request = self.context.get('request')
        if value is not None and request is not None and value.owner_id != request.user.pk:
            raise serializers.ValidationError("Registro não encontrado.")
        return value


class CentavosField(serializers.IntegerField):
    """
    Money in centavos.

    Accepts an integer or a pt-BR money string ('R$ 1.234,56' -> 123456).
    Plain digit strings are read as centavos, like integers.
    """

    def to_internal_value(self, data):
        if isinstance(data, str) and not data.strip().lstrip('-').isdigit():
            parsed = parse_currency(data)
            if parsed is None:
                self.fail('invalid')
            data = parsed
        return super().to_internal_value(data)


# =============================================================================
# LEAD SERIALIZERS
# =============================================================================

class LeadSerializer(OwnedRelationMixin, serializers.ModelSerializer):

    origin_display = serializers.CharField(source='get_origin_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    contact_phone_display = serializers.SerializerMethodField()
    created_at_display = serializers.SerializerMethodField()
    property_title = serializers.CharField(source='property.title', read_only=True, default=None)

    class Meta:
        model = Lead
        fields = [
            'id',
            'property',
            'property_title',
            'contact_name',
            'contact_phone',
            'contact_phone_display',
            'contact_email',
            'message',
            'origin',
            'origin_display',
            'status',
            'status_display',
            'created_at',
            'created_at_display',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_contact_phone_display(self, obj):
        return format_phone(obj.contact_phone)

    def get_created_at_display(self, obj):
        return format_datetime(obj.created_at)

    def validate_property(self, value):
        return self._check_owner(value)


# =============================================================================
# DEAL SERIALIZERS
# =============================================================================

class DealSerializer(OwnedRelationMixin, serializers.ModelSerializer):

    value = CentavosField(required=False, allow_null=True, min_value=0)
    value_display = serializers.SerializerMethodField()
    expected_close_date_display = serializers.SerializerMethodField()
    days_open = serializers.SerializerMethodField()
    lead_name = serializers.CharField(source='lead.contact_name', read_only=True, default=None)
    property_title = serializers.CharField(source='property.title', read_only=True, default=None)

    class Meta:
        model = Deal
        fields = [
            'id',
            'title',
            'lead',
            'lead_name',
            'property',
            'property_title',
            'value',
            'value_display',
            'probability',
            'status',
            'expected_close_date',
            'expected_close_date_display',
            'closed_at',
            'days_open',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'closed_at', 'created_at', 'updated_at']

    def get_value_display(self, obj):
        return format_currency(obj.value)

    def get_expected_close_date_display(self, obj):
        return format_date(obj.expected_close_date)

    def get_days_open(self, obj):
        return days_between(obj.created_at, obj.closed_at or timezone.now())

    def validate_lead(self, value):
        return self._check_owner(value)

    def validate_property(self, value):
        return self._check_owner(value)


# =============================================================================
# TRANSACTION SERIALIZERS
# =============================================================================

class TransactionSerializer(OwnedRelationMixin, serializers.ModelSerializer):

    amount = CentavosField(min_value=0)
    amount_display = serializers.SerializerMethodField()
    commission_display = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id',
            'deal',
            'description',
            'amount',
            'amount_display',
            'commission_pct',
            'commission_amount',
            'commission_display',
            'date',
            'created_at',
        ]
        read_only_fields = ['id', 'created_at']

    def get_amount_display(self, obj):
        return format_currency(obj.amount)

    def get_commission_display(self, obj):
        return format_currency(obj.commission_amount)

    def validate_deal(self, value):
        return self._check_owner(value)


# =============================================================================
# INTERACTION SERIALIZERS
# =============================================================================

class InteractionSerializer(OwnedRelationMixin, serializers.ModelSerializer):

    type_display = serializers.CharField(source='get_type_display', read_only=True)
    direction_display = serializers.CharField(source='get_direction_display', read_only=True)
    created_at_display = serializers.SerializerMethodField()

    class Meta:
        model = Interaction
        fields = [
            'id',
            'lead',
            'deal',
            'type',
            'type_display',
            'direction',
            'direction_display',
            'message',
            'created_at',
            'created_at_display',
        ]
        read_only_fields = ['id', 'created_at']

    def get_created_at_display(self, obj):
        return format_datetime(obj.created_at)

    def validate_lead(self, value):
        return self._check_owner(value)

    def validate_deal(self, value):
        return self._check_owner(value)

    def validate(self, attrs):
        lead = attrs.get('lead', getattr(self.instance, 'lead', None))
        deal = attrs.get('deal', getattr(self.instance, 'deal', None))
        if lead is None and deal is None:
            raise serializers.ValidationError("Informe o lead ou a negociação.")
        return attrs


# =============================================================================
# ACTIVITY FEED
# =============================================================================

class ActivityLogSerializer(serializers.ModelSerializer):

    action_display = serializers.CharField(source='get_action_display', read_only=True)
    resource_display = serializers.CharField(source='get_resource_type_display', read_only=True)
    created_at_display = serializers.SerializerMethodField()

    class Meta:
        model = ActivityLog
        fields = [
            'id',
            'action',
            'action_display',
            'resource_type',
            'resource_display',
            'resource_id',
            'payload',
            'created_at',
            'created_at_display',
        ]
        read_only_fields = fields

    def get_created_at_display(self, obj):
        return format_datetime(obj.created_at)


# =============================================================================
# PUBLIC LEAD CAPTURE
# =============================================================================

class WhatsAppLeadSerializer(serializers.Serializer):
    """Visitor data sent before being redirected to WhatsApp."""

    property_id = serializers.IntegerField()
    contact_name = serializers.CharField(max_length=255)
    contact_phone = serializers.CharField(max_length=30)
    contact_email = serializers.EmailField(required=False, allow_blank=True, default='')
    message = serializers.CharField(required=False, allow_blank=True, default='', max_length=2000)

    def validate_contact_name(self, value):
        cleaned = value.strip()
        if not cleaned:
            raise serializers.ValidationError("Informe seu nome.")
        return cleaned

    def validate_contact_phone(self, value):
        digits = ''.join(ch for ch in value if ch.isdigit())
        if len(digits) < 10:
            raise serializers.ValidationError("Informe um telefone com DDD.")
        return normalize_phone(value)
