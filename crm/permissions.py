"""
Access control for the CRM endpoints.
"""

import logging

from rest_framework.permissions import BasePermission

from services import CRMAccessDenied, enforce_crm_access

logger = logging.getLogger(__name__)


class IsPremiumBroker(BasePermission):
    """
    Allows access only to brokers on a plan that includes the CRM.

    Users without a broker profile are treated as being on the free plan.
    """

    message = 'O CRM é exclusivo do Plano Premium.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        profile = getattr(user, 'broker_profile', None)
        plan_type = profile.plan_type if profile else None
        try:
            enforce_crm_access(plan_type)
        except CRMAccessDenied as exc:
            logger.info(f"CRM access denied for user {user.pk} on plan '{plan_type}'")
            self.message = str(exc)
            return False
        return True
