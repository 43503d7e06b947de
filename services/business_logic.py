"""
Business Logic Services for the Vitrine Application.

This module implements the rules that sit between the storefront/CRM
models and the API layer:

Key Features:
- Subscription plan limits (how many active listings a broker may publish)
- CRM access gating (premium tier only)
- CRM report aggregation (lead funnel, deal outcomes, revenue)
- WhatsApp lead links for the public portal

Every function works on plain values or model-like objects (anything with
the expected attributes), so it can be unit tested without a database.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

from django.utils import timezone

from .formatters import digits_only

logger = logging.getLogger(__name__)


# =============================================================================
# SUBSCRIPTION PLANS
# =============================================================================

PLAN_FREE = 'free'
PLAN_CREDITS = 'credits'
PLAN_PRO = 'pro'
PLAN_PREMIUM = 'premium'

PLAN_CHOICES = [
    (PLAN_FREE, 'Grátis'),
    (PLAN_CREDITS, 'Créditos'),
    (PLAN_PRO, 'Pro'),
    (PLAN_PREMIUM, 'Premium'),
]

# Active listing allowance per plan; None means unlimited
PLAN_LISTING_LIMITS = {
    PLAN_FREE: 2,
    PLAN_CREDITS: 2,
    PLAN_PRO: 15,
    PLAN_PREMIUM: None,
}

CRM_PLANS = {PLAN_PREMIUM}


def get_listing_limit(plan_type: Optional[str], credits: int = 0) -> Optional[int]:
    """
    Number of active listings allowed for a plan.

    Unknown or missing plans fall back to the free allowance. On the
    credits plan every purchased credit unlocks one more listing.
    """
    plan = plan_type if plan_type in PLAN_LISTING_LIMITS else PLAN_FREE
    limit = PLAN_LISTING_LIMITS[plan]

    if limit is not None and plan == PLAN_CREDITS:
        limit += max(credits or 0, 0)

    return limit


def remaining_listing_slots(plan_type: Optional[str], active_count: int, credits: int = 0) -> Optional[int]:
    """Listings the broker can still publish, or None when unlimited."""
    limit = get_listing_limit(plan_type, credits)
    if limit is None:
        return None
    return max(limit - active_count, 0)


def can_create_listing(plan_type: Optional[str], active_count: int, credits: int = 0) -> bool:
    """True when one more active listing fits in the broker's plan."""
    remaining = remaining_listing_slots(plan_type, active_count, credits)
    return remaining is None or remaining > 0


def has_crm_access(plan_type: Optional[str]) -> bool:
    """The CRM is exclusive to the premium plan."""
    return plan_type in CRM_PLANS


# =============================================================================
# CRM REPORTS
# =============================================================================

@dataclass
class CRMReport:
    """Aggregated CRM figures shown on the reports page."""
    total_leads: int = 0
    leads_this_month: int = 0
    active_deals: int = 0
    won_deals: int = 0
    lost_deals: int = 0
    total_revenue: int = 0
    estimated_revenue: int = 0
    avg_deal_value: int = 0
    conversion_rate: float = 0.0
    leads_by_origin: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _value(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def calculate_crm_report(leads: Iterable, deals: Iterable, transactions: Iterable,
                         now: Optional[datetime] = None) -> CRMReport:
    """
    Build the CRM report for one broker.

    Args:
        leads: objects with `created_at` and `origin`
        deals: objects with `status` ('open', 'won', 'lost'), `value` in centavos
               and `probability` (0-100)
        transactions: objects with `amount` and optional `commission_amount` in centavos
        now: reference moment for "this month" (defaults to timezone.now())

    Revenue counts the commission when one was recorded and the full
    amount otherwise. Conversion rate is won deals over total leads.
    Estimated revenue weighs each open deal value by its probability.
    """
    now = timezone.localtime(now or timezone.now())
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    report = CRMReport()

    for lead in leads:
        report.total_leads += 1
        created_at = _value(lead, 'created_at')
        if created_at is not None and created_at >= month_start:
            report.leads_this_month += 1
        origin = _value(lead, 'origin') or 'outros'
        report.leads_by_origin[origin] = report.leads_by_origin.get(origin, 0) + 1

    won_value = 0
    open_value = 0
    for deal in deals:
        status = _value(deal, 'status')
        if status == 'open':
            report.active_deals += 1
            open_value += (_value(deal, 'value') or 0) * (_value(deal, 'probability') or 0) / 100
        elif status == 'won':
            report.won_deals += 1
            won_value += _value(deal, 'value') or 0
        elif status == 'lost':
            report.lost_deals += 1

    for transaction in transactions:
        commission = _value(transaction, 'commission_amount')
        report.total_revenue += commission or _value(transaction, 'amount') or 0

    report.estimated_revenue = round(open_value)

    if report.won_deals:
        report.avg_deal_value = round(won_value / report.won_deals)

    if report.total_leads:
        report.conversion_rate = round(report.won_deals / report.total_leads * 100, 1)

    logger.debug(
        f"CRM report: {report.total_leads} leads, {report.won_deals} won, "
        f"conversion {report.conversion_rate}%"
    )
    return report


# =============================================================================
# WHATSAPP LEADS
# =============================================================================

WHATSAPP_BASE_URL = 'https://wa.me/'


def build_whatsapp_message(property_title: str, property_url: str = '') -> str:
    message = f"Olá, tenho interesse no imóvel {property_title}"
    if property_url:
        message += f" - link: {property_url}"
    return message


def build_whatsapp_url(phone: str, message: str = '') -> str:
    """wa.me deep link for a phone number with an optional prefilled message."""
    url = f"{WHATSAPP_BASE_URL}{digits_only(phone)}"
    if message:
        url += f"?text={quote(message)}"
    return url
