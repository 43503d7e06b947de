"""
WSGI config for vitrine project.

This module contains the WSGI application used by Django's development server
and any production WSGI deployments. It should expose a module-level variable
named ``application``.

For Render deployment, this is the production entry point:
    gunicorn vitrine.wsgi:application
"""

import json
import logging
import os

from django.core.wsgi import get_wsgi_application

# Set the default settings module for the 'vitrine' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vitrine.settings')

# Initialize Django application early to avoid AppRegistryNotReady errors
django_application = get_wsgi_application()

logger = logging.getLogger('vitrine.wsgi')


# =============================================================================
# PRODUCTION WSGI APPLICATION
# =============================================================================

def application(environ, start_response):
    """
    Production WSGI application with a health-check fast path and a JSON
    fallback for errors raised outside Django's own handling.
    """

    # Fast path for health checks to avoid Django overhead
    if environ.get('PATH_INFO') == '/wsgi-health/':
        start_response('200 OK', [
            ('Content-Type', 'application/json'),
            ('Cache-Control', 'no-cache'),
        ])
        return [b'{"status": "healthy", "service": "vitrine-wsgi"}']

    try:
        return django_application(environ, start_response)
    except Exception:
        logger.exception("WSGI application error")

        start_response('500 Internal Server Error', [
            ('Content-Type', 'application/json'),
            ('Cache-Control', 'no-cache'),
        ])
        error_response = {
            "error": "Internal server error",
            "message": "The server encountered an unexpected condition",
            "service": "vitrine-wsgi"
        }
        return [json.dumps(error_response).encode('utf-8')]
