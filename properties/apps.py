"""
Properties App Configuration - Vitrine Backend
Django app configuration for the storefront application.
"""

from django.apps import AppConfig


class PropertiesConfig(AppConfig):
    """
    Configuration for the Properties app.

    This app manages:
    - Broker profiles (portal identity, plan, brand colour)
    - Listings and their photo galleries
    - The public portal and theme endpoints
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'properties'
    verbose_name = 'Storefront'
