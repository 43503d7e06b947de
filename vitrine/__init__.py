"""
Vitrine project package.

Django project for the broker digital storefront: settings, root URL
configuration, WSGI/ASGI entry points and project-wide middleware.
"""
