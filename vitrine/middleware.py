# ===== SECURITY MIDDLEWARE =====
"""
Custom security middleware for the Vitrine application.
Provides per-client rate limiting for the public, unauthenticated endpoints
(WhatsApp lead capture, token issuance).
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.http import JsonResponse

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """
    Fixed-window rate limiting keyed by user (or client IP) and endpoint.

    Limits come from settings.RATE_LIMITS:
        {'/api/v1/crm/whatsapp-lead/': {'requests': 30, 'window': 3600}}
    Paths without a configured prefix are never limited.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        # Check rate limits before processing request
        if not self._check_rate_limit(request):
            return JsonResponse(
                {
                    'error': 'Rate limit exceeded',
                    'message': 'Too many requests. Please try again later.',
                    'retry_after': self._get_retry_after(request)
                },
                status=429
            )

        return self.get_response(request)

    @property
    def rate_limits(self):
        return getattr(settings, 'RATE_LIMITS', {})

    def _check_rate_limit(self, request) -> bool:
        """Check if request is within rate limits."""
        endpoint = self._get_endpoint_pattern(request.path)
        if endpoint is None:
            return True  # No limit configured

        limit_config = self.rate_limits[endpoint]
        client_id = self._get_client_identifier(request)
        cache_key = f"rate_limit:{client_id}:{endpoint}"

        # Get current request count
        current_count = cache.get(cache_key, 0)

        if current_count >= limit_config['requests']:
            logger.warning(f"Rate limit exceeded for {client_id} on {endpoint}")
            return False

        try:
            cache.incr(cache_key)
        except ValueError:
            # First hit in this window (or the window just expired)
            cache.set(cache_key, 1, limit_config['window'])
        return True

    def _get_client_identifier(self, request) -> str:
        """Get unique identifier for rate limiting."""
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            return f"user_{user.pk}"

        # Use IP for anonymous users
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR', 'unknown')

        return f"ip_{ip}"

    def _get_endpoint_pattern(self, path: str):
        """Match request path to configured endpoint pattern."""
        for pattern in self.rate_limits:
            if path.startswith(pattern):
                return pattern
        return None

    def _get_retry_after(self, request) -> int:
        """Get retry-after time in seconds."""
        endpoint = self._get_endpoint_pattern(request.path)
        return self.rate_limits.get(endpoint, {}).get('window', 3600)
