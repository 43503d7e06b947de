#!/usr/bin/env python
"""
Django's command-line utility for administrative tasks.

Vitrine Backend Management Script
=================================

Usage Examples:
===============

Development:
  python manage.py runserver                    # Start development server
  python manage.py migrate                      # Apply migrations
  python manage.py createsuperuser              # Create admin user

Tests:
  python manage.py test                         # Run the Django test suite
  pytest                                        # Same suite through pytest-django

Production:
  python manage.py collectstatic --noinput      # Collect static files for whitenoise
"""

import os
import sys


def main():
    """Run administrative tasks."""

    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vitrine.settings')

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        error_msg = (
            "Couldn't import Django. Is it installed and available on your "
            "PYTHONPATH environment variable? Did you forget to activate a "
            "virtual environment?\n\n"
            f"Current Python path: {sys.executable}\n"
            f"DJANGO_SETTINGS_MODULE: {os.environ.get('DJANGO_SETTINGS_MODULE', 'Not set')}\n\n"
            "Try running: pip install -e .[test]"
        )
        raise ImportError(error_msg) from exc

    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
