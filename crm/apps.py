"""
CRM App Configuration - Vitrine Backend
"""

from django.apps import AppConfig


class CrmConfig(AppConfig):
    """
    Configuration for the CRM app.

    This app manages:
    - Leads captured from the portal or entered by the broker
    - Deals in the sales pipeline
    - Transactions and commissions of closed deals
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'crm'
    verbose_name = 'CRM'
