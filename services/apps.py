"""
Django application configuration for the services app.

The services app holds the pure business logic of the Vitrine platform:
theme colour maths, the portal listing pipeline, plan limits, CRM reports
and display formatters.
"""

from django.apps import AppConfig


class ServicesConfig(AppConfig):
    """
    Application configuration for the services app.

    This app has no models; it is registered so its test suite is picked
    up by the Django test runner.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'services'
    verbose_name = 'Services'
