# ===== SERVICES INTEGRATION LAYER =====
"""
Centralized service integration layer for the Vitrine backend.
Provides consistent interfaces and error handling for the business services
used by the storefront and CRM apps.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


# =============================================================================
# SERVICE EXCEPTIONS
# =============================================================================

class ServiceError(Exception):
    """Base exception for business service errors."""
    pass


class PlanLimitExceeded(ServiceError):
    """Raised when a broker tries to publish beyond their plan allowance."""

    def __init__(self, plan_type: Optional[str], limit: int):
        self.plan_type = plan_type
        self.limit = limit
        super().__init__(
            f"O plano {plan_type or 'free'} permite até {limit} imóveis ativos. "
            "Faça upgrade para publicar mais."
        )


class CRMAccessDenied(ServiceError):
    """Raised when a non-premium broker reaches for the CRM."""

    def __init__(self, plan_type: Optional[str] = None):
        self.plan_type = plan_type
        super().__init__('O CRM é exclusivo do Plano Premium.')


# =============================================================================
# PLAN ENFORCEMENT
# =============================================================================

def enforce_listing_limit(plan_type: Optional[str], active_count: int, credits: int = 0) -> None:
    """
    Check that one more active listing fits in the plan.

    Raises:
        PlanLimitExceeded: if the broker is already at the allowance
    """
    from .business_logic import can_create_listing, get_listing_limit

    if not can_create_listing(plan_type, active_count, credits):
        limit = get_listing_limit(plan_type, credits)
        logger.info(f"Listing limit reached for plan '{plan_type}' ({active_count}/{limit})")
        raise PlanLimitExceeded(plan_type, limit)


def enforce_crm_access(plan_type: Optional[str]) -> None:
    """
    Raises:
        CRMAccessDenied: unless the plan includes the CRM
    """
    from .business_logic import has_crm_access

    if not has_crm_access(plan_type):
        raise CRMAccessDenied(plan_type)


# =============================================================================
# EXPORT FOR EASY IMPORTS
# =============================================================================

__all__ = [
    'ServiceError',
    'PlanLimitExceeded',
    'CRMAccessDenied',
    'enforce_listing_limit',
    'enforce_crm_access',
]
