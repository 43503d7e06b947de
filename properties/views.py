"""
Views for the properties app.

This module defines the broker dashboard viewset for listings, the public
portal endpoints and the theme endpoints.

The portal runs the broker's active listings through
services.listing_pipeline so that the public page and the storefront
preview share one filtering, sorting and paging behaviour.
"""

import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from services import PlanLimitExceeded, enforce_listing_limit
from services.business_logic import (
    build_whatsapp_message,
    build_whatsapp_url,
    get_listing_limit,
    has_crm_access,
    remaining_listing_slots,
)
from services.color_utils import COLOR_PALETTES, evaluate_theme_color
from services.listing_pipeline import FilterSpec, build_listing_page

from .filters import PropertyFilter
from .models import BrokerProfile, Property, PropertyView
from .serializers import (
    BrokerCardSerializer,
    ListingCardSerializer,
    PortalListingDetailSerializer,
    PortalQuerySerializer,
    PropertyDetailSerializer,
    PropertyListSerializer,
    ThemeSerializer,
)

logger = logging.getLogger(__name__)


def get_broker_profile(user) -> BrokerProfile:
    """Profile of an authenticated user, created on first use."""
    profile, created = BrokerProfile.objects.get_or_create(
        user=user,
        defaults={'name': user.get_full_name() or user.get_username()},
    )
    if created:
        logger.info(f"Created broker profile '{profile.slug}' for user {user.pk}")
    return profile


# =============================================================================
# CUSTOM PAGINATION CLASS
# =============================================================================

class ListingPagination(PageNumberPagination):
    """
    Page-number pagination matching the portal grid (3 x 3 cards).

    Usage:
        GET /api/v1/properties/         -> first 9 listings
        GET /api/v1/properties/?page=2  -> next 9
    """
    page_size = settings.LISTING_PAGE_SIZE


# =============================================================================
# PROPERTY VIEWSET
# =============================================================================

class PropertyViewSet(viewsets.ModelViewSet):
    """
    API endpoint for the authenticated broker's own listings.

    Supports:
    - List with search, price range, bedrooms and sort filters
    - Create (within the plan's active listing allowance)
    - Retrieve, update and delete
    - plan_usage: current allowance and usage
    """
    serializer_class = PropertyListSerializer
    pagination_class = ListingPagination
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = PropertyFilter

    def get_serializer_class(self):
        if self.action == 'list':
            return PropertyListSerializer
        return PropertyDetailSerializer

    def get_queryset(self):
        return (
            Property.objects
            .filter(owner=self.request.user)
            .prefetch_related('images')
        )

    def _enforce_limit(self, profile):
        try:
            enforce_listing_limit(profile.plan_type, profile.active_listing_count, profile.credits)
        except PlanLimitExceeded as exc:
            raise PermissionDenied(str(exc))

    def perform_create(self, serializer):
        profile = get_broker_profile(self.request.user)
        if serializer.validated_data.get('is_active', True):
            self._enforce_limit(profile)

        instance = serializer.save(owner=self.request.user)
        logger.info(f"Broker '{profile.slug}' created listing {instance.pk} ({instance.slug})")

    def perform_update(self, serializer):
        # Re-publishing a listing takes a slot like creating one does
        if not serializer.instance.is_active and serializer.validated_data.get('is_active'):
            self._enforce_limit(get_broker_profile(self.request.user))
        serializer.save()

    def perform_destroy(self, instance):
        logger.info(f"Deleting listing {instance.pk} of user {instance.owner_id}")
        instance.delete()

    @action(detail=False, methods=['get'])
    def plan_usage(self, request):
        """
        Current plan allowance for the broker.

        GET /api/v1/properties/plan_usage/

        Response:
        {
            "plan_type": "free",
            "active_listings": 1,
            "limit": 2,
            "remaining": 1,
            "can_create": true,
            "has_crm_access": false
        }
        """
        profile = get_broker_profile(request.user)
        active = profile.active_listing_count
        remaining = remaining_listing_slots(profile.plan_type, active, profile.credits)

        return Response({
            'plan_type': profile.plan_type,
            'active_listings': active,
            'limit': get_listing_limit(profile.plan_type, profile.credits),
            'remaining': remaining,
            'can_create': remaining is None or remaining > 0,
            'has_crm_access': has_crm_access(profile.plan_type),
        })


# =============================================================================
# PUBLIC PORTAL
# =============================================================================

@api_view(['GET'])
@permission_classes([AllowAny])
def portal_listings(request, broker_slug):
    """
    Public portal of a broker.

    GET /api/v1/portal/{broker_slug}/?search=&min_price=&max_price=&bedrooms=&sort=&page=

    Filters are parsed leniently: a malformed value disables that filter
    instead of failing the request.
    """
    profile = get_object_or_404(BrokerProfile, slug=broker_slug)

    query = PortalQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    listings = [
        listing.to_listing_record()
        for listing in (
            Property.objects
            .filter(owner_id=profile.user_id, is_active=True)
            .prefetch_related('images')
        )
    ]
    spec = FilterSpec.from_params(request.query_params)
    page = build_listing_page(
        listings,
        spec,
        page=query.validated_data['page'],
        page_size=settings.LISTING_PAGE_SIZE,
    )

    return Response({
        'broker': BrokerCardSerializer(profile).data,
        'results': ListingCardSerializer(page.items, many=True).data,
        'page': page.page,
        'page_size': page.page_size,
        'total_pages': page.total_pages,
        'filtered_count': page.filtered_count,
        'total_count': page.total_count,
        'has_next': page.has_next,
        'has_previous': page.has_previous,
        'empty_state': page.empty_state,
        'filters': {
            'search': spec.search,
            'min_price': spec.min_price,
            'max_price': spec.max_price,
            'bedrooms': request.query_params.get('bedrooms') or 'all',
            'sort': spec.sort.value,
        },
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def portal_listing_detail(request, broker_slug, property_slug):
    """
    Public page of a single active listing.

    GET /api/v1/portal/{broker_slug}/{property_slug}/
    """
    profile = get_object_or_404(BrokerProfile, slug=broker_slug)
    listing = get_object_or_404(
        Property.objects.prefetch_related('images'),
        owner_id=profile.user_id,
        slug=property_slug,
        is_active=True,
    )

    PropertyView.record(listing, request.META)

    page_url = f"{settings.PUBLIC_SITE_URL.rstrip('/')}/{profile.slug}/{listing.slug}"
    data = PortalListingDetailSerializer(listing).data
    data['whatsapp_url'] = build_whatsapp_url(
        listing.whatsapp_number,
        build_whatsapp_message(listing.title, page_url),
    )
    return Response(data)


# =============================================================================
# THEME
# =============================================================================

@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def theme(request):
    """
    Read or change the portal brand colour.

    GET /api/v1/theme/
    PUT /api/v1/theme/  {"primary_color": "#1e40af"}

    Invalid colours are rejected with 400; low-contrast colours are saved
    and the response carries the warning.
    """
    profile = get_broker_profile(request.user)

    if request.method == 'PUT':
        serializer = ThemeSerializer(profile, data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Broker '{profile.slug}' changed theme to {profile.primary_color}")
        return Response(serializer.data, status=status.HTTP_200_OK)

    return Response(ThemeSerializer(profile).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def theme_palettes(request):
    """
    Preset brand colours with their contrast evaluation.

    GET /api/v1/theme/palettes/
    """
    palettes = [
        {**palette, 'evaluation': evaluate_theme_color(palette['hex']).to_dict()}
        for palette in COLOR_PALETTES
    ]
    return Response(palettes)
