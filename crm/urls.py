"""
URL configuration for the CRM app.

Included by the main project URLs at /api/v1/crm/.

- /leads/, /leads/{id}/                 - Lead CRUD (premium)
- /deals/, /deals/{id}/                 - Deal CRUD (premium)
- /transactions/, /transactions/{id}/   - Transaction CRUD (premium)
- /interactions/, /interactions/{id}/   - Interaction CRUD (premium)
- /reports/                             - Dashboard figures (premium)
- /activities/                          - Latest 50 activity entries (premium)
- /whatsapp-lead/                       - Public lead capture (POST)
"""

from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import (
    DealViewSet,
    InteractionViewSet,
    LeadViewSet,
    TransactionViewSet,
    activity_feed,
    crm_report,
    whatsapp_lead,
)


router = SimpleRouter()
router.register(r'leads', LeadViewSet, basename='lead')
router.register(r'deals', DealViewSet, basename='deal')
router.register(r'transactions', TransactionViewSet, basename='transaction')
router.register(r'interactions', InteractionViewSet, basename='interaction')

urlpatterns = [
    path('', include(router.urls)),
    path('reports/', crm_report, name='crm-report'),
    path('activities/', activity_feed, name='crm-activities'),
    path('whatsapp-lead/', whatsapp_lead, name='whatsapp-lead'),
]
