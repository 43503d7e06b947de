"""
Views for the CRM app.

Leads, deals, transactions and interactions are scoped to the requesting
broker and available on the premium plan only, as are the report and the
activity feed. The WhatsApp lead endpoint is public: portal visitors leave
their contact and get the wa.me link back.
"""

import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from properties.models import Property
from services.business_logic import build_whatsapp_message, build_whatsapp_url, calculate_crm_report
from services.formatters import format_percentage

from .filters import DealFilter, InteractionFilter, LeadFilter, TransactionFilter
from .models import ActivityLog, Deal, Interaction, Lead, Transaction
from .permissions import IsPremiumBroker
from .serializers import (
    ActivityLogSerializer,
    DealSerializer,
    InteractionSerializer,
    LeadSerializer,
    TransactionSerializer,
    WhatsAppLeadSerializer,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CRM VIEWSETS
# =============================================================================

class OwnedModelViewSet(viewsets.ModelViewSet):
    """
    ModelViewSet restricted to rows owned by the requesting broker.

    Every create, update and delete is written to the activity feed.
    """

    permission_classes = [IsAuthenticated, IsPremiumBroker]
    filter_backends = [DjangoFilterBackend]

    def get_queryset(self):
        return self.queryset.filter(owner=self.request.user)

    def perform_create(self, serializer):
        instance = serializer.save(owner=self.request.user)
        logger.info(f"User {self.request.user.pk} created {instance._meta.model_name} {instance.pk}")
        ActivityLog.record(self.request.user, ActivityLog.ACTION_CREATE, instance, {'label': str(instance)})

    def perform_update(self, serializer):
        instance = serializer.save()
        ActivityLog.record(
            self.request.user,
            ActivityLog.ACTION_UPDATE,
            instance,
            {'fields': sorted(serializer.validated_data)},
        )

    def perform_destroy(self, instance):
        pk = instance.pk
        label = str(instance)
        instance.delete()
        logger.info(f"User {self.request.user.pk} deleted {instance._meta.model_name} {pk}")
        ActivityLog.record(self.request.user, ActivityLog.ACTION_DELETE, instance, {'label': label}, resource_id=pk)


class LeadViewSet(OwnedModelViewSet):
    """
    API endpoint for leads.

    Filters: status, origin, property, search
    """
    queryset = Lead.objects.select_related('property')
    serializer_class = LeadSerializer
    filterset_class = LeadFilter


class DealViewSet(OwnedModelViewSet):
    """
    API endpoint for the deal pipeline.

    Filters: status, lead, property, lead_origin
    """
    queryset = Deal.objects.select_related('lead', 'property')
    serializer_class = DealSerializer
    filterset_class = DealFilter

    def perform_update(self, serializer):
        previous = serializer.instance.status
        super().perform_update(serializer)
        instance = serializer.instance
        if instance.status != previous:
            logger.info(f"Deal {instance.pk} moved from {previous} to {instance.status}")
            ActivityLog.record(
                self.request.user,
                ActivityLog.ACTION_MOVE,
                instance,
                {'from': previous, 'to': instance.status},
            )


class TransactionViewSet(OwnedModelViewSet):
    """
    API endpoint for transactions.

    Filters: deal, date_from, date_to
    """
    queryset = Transaction.objects.select_related('deal')
    serializer_class = TransactionSerializer
    filterset_class = TransactionFilter


class InteractionViewSet(OwnedModelViewSet):
    """
    API endpoint for the contact history of leads and deals.

    Filters: lead, deal, type
    """
    queryset = Interaction.objects.select_related('lead', 'deal')
    serializer_class = InteractionSerializer
    filterset_class = InteractionFilter


# =============================================================================
# ACTIVITY FEED
# =============================================================================

ACTIVITY_FEED_LIMIT = 50


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPremiumBroker])
def activity_feed(request):
    """
    Most recent CRM activity of the broker, newest first.

    GET /api/v1/crm/activities/

    Returns at most 50 entries:
    [
        {
            "action": "move",
            "action_display": "Moveu",
            "resource_type": "deal",
            "resource_display": "Negociação",
            "resource_id": "12",
            "payload": {"from": "open", "to": "won"},
            "created_at_display": "05/03/2024 14:30",
            ...
        }
    ]
    """
    entries = ActivityLog.objects.filter(owner=request.user)[:ACTIVITY_FEED_LIMIT]
    return Response(ActivityLogSerializer(entries, many=True).data)


# =============================================================================
# REPORTS
# =============================================================================

@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPremiumBroker])
def crm_report(request):
    """
    Dashboard figures for the broker's CRM.

    GET /api/v1/crm/reports/

    Response:
    {
        "total_leads": 12,
        "leads_this_month": 4,
        "active_deals": 3,
        "won_deals": 2,
        "lost_deals": 1,
        "total_revenue": 4500000,
        "estimated_revenue": 18000000,
        "avg_deal_value": 60000000,
        "conversion_rate": 16.7,
        "conversion_rate_display": "16.7%",
        "leads_by_origin": {"whatsapp": 8, "instagram": 4}
    }
    """
    user = request.user
    report = calculate_crm_report(
        Lead.objects.filter(owner=user).only('created_at', 'origin'),
        Deal.objects.filter(owner=user).only('status', 'value', 'probability'),
        Transaction.objects.filter(owner=user).only('amount', 'commission_amount'),
    )
    data = report.to_dict()
    data['conversion_rate_display'] = format_percentage(report.conversion_rate)
    return Response(data)


# =============================================================================
# PUBLIC WHATSAPP LEAD CAPTURE
# =============================================================================

@api_view(['POST'])
@permission_classes([AllowAny])
def whatsapp_lead(request):
    """
    Record a portal visitor as a lead and return the WhatsApp link.

    POST /api/v1/crm/whatsapp-lead/
    {
        "property_id": 42,
        "contact_name": "Maria",
        "contact_phone": "11987654321",
        "message": "Ainda está disponível?"
    }

    Response (201):
    {
        "lead_id": 7,
        "whatsapp_url": "https://wa.me/11999990000?text=..."
    }
    """
    serializer = WhatsAppLeadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    listing = get_object_or_404(
        Property.objects.select_related('owner__broker_profile'),
        pk=data['property_id'],
        is_active=True,
    )

    lead = Lead.objects.create(
        owner=listing.owner,
        property=listing,
        contact_name=data['contact_name'],
        contact_phone=data['contact_phone'],
        contact_email=data['contact_email'],
        message=data['message'],
        origin='whatsapp',
    )
    ActivityLog.record(
        listing.owner, ActivityLog.ACTION_CREATE, lead, {'label': str(lead), 'origin': 'whatsapp'}
    )

    profile = getattr(listing.owner, 'broker_profile', None)
    page_url = ''
    if profile is not None:
        page_url = f"{settings.PUBLIC_SITE_URL.rstrip('/')}/{profile.slug}/{listing.slug}"

    # E-mail delivery is handled outside this service
    logger.info(
        f"Lead notification due: broker {listing.owner_id}, lead {lead.pk}, "
        f"property '{listing.title}'"
    )

    return Response(
        {
            'lead_id': lead.pk,
            'whatsapp_url': build_whatsapp_url(
                listing.whatsapp_number,
                build_whatsapp_message(listing.title, page_url),
            ),
        },
        status=status.HTTP_201_CREATED,
    )
