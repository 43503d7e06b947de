"""
Display formatters for the CRM and portal.

Locale: pt-BR, currency: BRL (stored as integer centavos), local time from
settings.TIME_ZONE (America/Sao_Paulo).
"""

import logging
import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, None]


# =============================================================================
# LABELS
# =============================================================================

LEAD_ORIGINS = {
    'platform': 'Plataforma',
    'whatsapp': 'WhatsApp',
    'instagram': 'Instagram',
    'indicacao': 'Indicação',
    'ligacao': 'Ligação',
    'email': 'E-mail',
    'outros': 'Outros',
}

LEAD_STATUS = {
    'active': 'Ativo',
    'contacted': 'Contatado',
    'qualified': 'Qualificado',
    'unqualified': 'Não Qualificado',
    'converted': 'Convertido',
    'lost': 'Perdido',
}

INTERACTION_TYPES = {
    'whatsapp': 'WhatsApp',
    'ligacao': 'Ligação',
    'email': 'E-mail',
    'visita': 'Visita',
    'nota': 'Nota',
}


# =============================================================================
# MONEY
# =============================================================================

def format_currency(centavos: Optional[int]) -> str:
    """Format an amount in centavos as BRL, e.g. 123456 -> 'R$ 1.234,56'."""
    if centavos is None:
        return 'R$ 0,00'

    amount = (Decimal(centavos) / 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = '-' if amount < 0 else ''
    # Swap US separators for pt-BR ones
    digits = f"{abs(amount):,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{sign}R$ {digits}"


def parse_currency(value: str) -> Optional[int]:
    """
    Parse a pt-BR money string into centavos.

    'R$ 1.234,56' -> 123456. Returns None when no number can be read.
    """
    if not value:
        return None

    numbers = re.sub(r'[^\d,]', '', value).replace(',', '.', 1)
    try:
        amount = Decimal(numbers)
    except InvalidOperation:
        logger.debug(f"Could not parse currency value {value!r}")
        return None

    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return '0%'
    return f"{value:.1f}%"


# =============================================================================
# PHONES
# =============================================================================

def digits_only(phone: str) -> str:
    return re.sub(r'\D', '', phone or '')


def format_phone(phone: Optional[str]) -> str:
    """Apply the Brazilian mask to 10 or 11 digit numbers: (11) 98765-4321."""
    if not phone:
        return '-'

    numbers = digits_only(phone)
    if len(numbers) == 11:
        return f"({numbers[:2]}) {numbers[2:7]}-{numbers[7:]}"
    if len(numbers) == 10:
        return f"({numbers[:2]}) {numbers[2:6]}-{numbers[6:]}"
    return phone


def normalize_phone(phone: str) -> str:
    """Convert local 10/11 digit numbers to E.164 with the +55 country code."""
    numbers = digits_only(phone)
    if len(numbers) in (10, 11):
        return f"+55{numbers}"
    return phone


# =============================================================================
# DATES
# =============================================================================

def _to_datetime(value: DateLike) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    else:
        try:
            result = parse_datetime(value)
            parsed = parse_date(value) if result is None else None
        except ValueError:
            # Well formed but impossible, e.g. 2024-13-45
            logger.debug(f"Ignoring invalid date {value!r}")
            return None
        if result is None:
            if parsed is None:
                return None
            result = datetime(parsed.year, parsed.month, parsed.day)

    if timezone.is_naive(result):
        result = timezone.make_aware(result)
    return result


def format_date(value: DateLike) -> str:
    """dd/mm/yyyy in local time, '-' when missing."""
    moment = _to_datetime(value)
    if moment is None:
        return '-'
    return timezone.localtime(moment).strftime('%d/%m/%Y')


def format_datetime(value: DateLike) -> str:
    """dd/mm/yyyy HH:MM in local time, '-' when missing."""
    moment = _to_datetime(value)
    if moment is None:
        return '-'
    return timezone.localtime(moment).strftime('%d/%m/%Y %H:%M')


def days_between(first: DateLike, second: DateLike) -> int:
    """Whole days between two moments, rounded up; order does not matter."""
    start = _to_datetime(first)
    end = _to_datetime(second)
    if start is None or end is None:
        return 0
    seconds = abs((end - start).total_seconds())
    return math.ceil(seconds / 86400)
