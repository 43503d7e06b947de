"""
URL configuration for properties app.

Included by the main project URLs at /api/v1/.

URL Structure Generated:
========================

Broker dashboard (authenticated):
- /api/v1/properties/                      - Listing list/create (GET, POST)
- /api/v1/properties/{id}/                 - Listing detail/update/delete
- /api/v1/properties/plan_usage/           - Plan allowance (GET)

Public portal:
- /api/v1/portal/{broker_slug}/                    - Filtered, paged listings
- /api/v1/portal/{broker_slug}/{property_slug}/    - Listing page

Theme (authenticated):
- /api/v1/theme/                           - Brand colour (GET, PUT)
- /api/v1/theme/palettes/                  - Preset colours (GET)
"""

from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import (
    PropertyViewSet,
    portal_listing_detail,
    portal_listings,
    theme,
    theme_palettes,
)


# =============================================================================
# ROUTER CONFIGURATION
# =============================================================================

router = SimpleRouter()
router.register(r'properties', PropertyViewSet, basename='property')


# =============================================================================
# MAIN URL PATTERNS
# =============================================================================

urlpatterns = [
    path('', include(router.urls)),

    path('portal/<slug:broker_slug>/', portal_listings, name='portal-listings'),
    path(
        'portal/<slug:broker_slug>/<slug:property_slug>/',
        portal_listing_detail,
        name='portal-listing-detail',
    ),

    path('theme/', theme, name='theme'),
    path('theme/palettes/', theme_palettes, name='theme-palettes'),
]
