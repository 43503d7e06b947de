"""
URL configuration for vitrine project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.0/topics/http/urls/
"""

import logging
import sys

from django.conf import settings
from django.contrib import admin
from django.db import connection
from django.http import JsonResponse
from django.urls import path, include
from django.utils import timezone
from django.views.decorators.cache import cache_control
from django.views.decorators.http import require_http_methods
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

logger = logging.getLogger('vitrine.urls')


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@require_http_methods(["GET"])
@cache_control(no_cache=True, must_revalidate=True, no_store=True)
def health_check(request):
    """
    Health check endpoint for deployment monitoring.

    Returns:
        JSON response with system status and database connectivity
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return JsonResponse({
            "status": "healthy",
            "database": "connected",
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
            "timestamp": timezone.now().isoformat(),
        }, status=200)

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JsonResponse({
            "status": "unhealthy",
            "database": "error",
            "error": str(e) if settings.DEBUG else "Database connection failed"
        }, status=503)


# =============================================================================
# API INFO ENDPOINT
# =============================================================================

@require_http_methods(["GET"])
def api_info(request):
    """
    API information endpoint for frontend integration.

    Returns:
        JSON response with API version and available endpoints
    """
    return JsonResponse({
        "api_name": "Vitrine API",
        "version": "1.0",
        "description": "Digital storefront and CRM for real-estate brokers",
        "endpoints": {
            "authentication": {
                "token_obtain": "/api/v1/auth/token/",
                "token_refresh": "/api/v1/auth/token/refresh/",
                "token_verify": "/api/v1/auth/token/verify/",
            },
            "properties": {
                "list_create": "/api/v1/properties/",
                "detail_update": "/api/v1/properties/{id}/",
                "plan_usage": "/api/v1/properties/plan_usage/",
            },
            "portal": {
                "listings": "/api/v1/portal/{broker_slug}/",
                "listing_detail": "/api/v1/portal/{broker_slug}/{property_slug}/",
            },
            "theme": {
                "current": "/api/v1/theme/",
                "palettes": "/api/v1/theme/palettes/",
            },
            "crm": {
                "leads": "/api/v1/crm/leads/",
                "deals": "/api/v1/crm/deals/",
                "transactions": "/api/v1/crm/transactions/",
                "reports": "/api/v1/crm/reports/",
                "whatsapp_lead": "/api/v1/crm/whatsapp-lead/",
            },
            "utilities": {
                "health": "/api/v1/health/",
            }
        },
    })


# =============================================================================
# MAIN URL PATTERNS
# =============================================================================

urlpatterns = [
    # Django Admin Interface
    path('admin/', admin.site.urls),

    # Health and System Status
    path('api/v1/health/', health_check, name='health-check'),
    path('api/v1/info/', api_info, name='api-info'),

    # Authentication Endpoints (JWT)
    path('api/v1/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/v1/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/v1/auth/token/verify/', TokenVerifyView.as_view(), name='token_verify'),

    # Core Application Endpoints
    path('api/v1/', include('properties.urls')),
    path('api/v1/crm/', include('crm.urls')),

    # API ROOT - Default API Landing Page
    path('api/', api_info, name='api-default'),
]


# =============================================================================
# CUSTOM ERROR HANDLERS
# =============================================================================

def custom_404_handler(request, exception):
    """Custom 404 handler for API endpoints"""
    if request.path.startswith('/api/'):
        return JsonResponse({
            'error': 'API endpoint not found',
            'message': f'The requested endpoint {request.path} does not exist',
            'available_endpoints': '/api/v1/info/'
        }, status=404)

    # Fall back to default 404 for non-API requests
    from django.views.defaults import page_not_found
    return page_not_found(request, exception)


def custom_500_handler(request):
    """Custom 500 handler for API endpoints"""
    if request.path.startswith('/api/'):
        return JsonResponse({
            'error': 'Internal server error',
            'message': 'An unexpected error occurred',
        }, status=500)

    from django.views.defaults import server_error
    return server_error(request)


handler404 = custom_404_handler
handler500 = custom_500_handler
