"""
ASGI config for vitrine project.

This module contains the ASGI application used by ASGI servers such as
Uvicorn, Daphne or Hypercorn. It exposes a module-level variable named
``application``.
"""

import os

from django.core.asgi import get_asgi_application

# Set the default settings module for the 'vitrine' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vitrine.settings')

# Initialize Django ASGI application early to ensure the AppRegistry
# is populated before importing code that may import ORM models.
application = get_asgi_application()
