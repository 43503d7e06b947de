"""
Colour Utilities for Vitrine Theme Customisation.

Pure colour maths used when a broker picks the brand colour of their
portal. Every function here is total: malformed input never raises, it
degrades to a documented fallback value instead.

Fallbacks:
- is_valid_hex() -> False
- normalize_hex() -> best-effort string
- hex_to_rgb() / hex_to_hsl() -> None
- get_contrast_ratio() -> 1.0 (no contrast)

Callers are expected to check is_valid_hex() before trusting a result
for a UI decision.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

WHITE = '#FFFFFF'
BLACK = '#000000'

# Minimum contrast for normal text under WCAG 2.x level AA
WCAG_AA_RATIO = 4.5

DEFAULT_BRAND_COLOR = '#0b3b66'

# Preset brand colours offered in the theme picker
COLOR_PALETTES = [
    {'name': 'Azul Escuro', 'hex': '#0b3b66', 'label': 'Padrão'},
    {'name': 'Preto', 'hex': '#000000', 'label': 'Preto'},
    {'name': 'Cinza Escuro', 'hex': '#374151', 'label': 'Cinza'},
    {'name': 'Marrom', 'hex': '#78350f', 'label': 'Marrom'},
    {'name': 'Vermelho', 'hex': '#991b1b', 'label': 'Vermelho'},
    {'name': 'Rosa', 'hex': '#9f1239', 'label': 'Rosa'},
    {'name': 'Laranja', 'hex': '#c2410c', 'label': 'Laranja'},
    {'name': 'Verde', 'hex': '#166534', 'label': 'Verde'},
    {'name': 'Azul', 'hex': '#1e40af', 'label': 'Azul'},
    {'name': 'Roxo', 'hex': '#6b21a8', 'label': 'Roxo'},
]

_HEX_PATTERN = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')
_RGB_PATTERN = re.compile(r'^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$', re.IGNORECASE)


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class HSL:
    """HSL triple with integer components, as used by Tailwind CSS variables."""
    hue: int
    saturation: int
    lightness: int

    def __str__(self) -> str:
        return f"{self.hue} {self.saturation}% {self.lightness}%"


@dataclass(frozen=True)
class ThemeEvaluation:
    """Result of checking a candidate brand colour for legibility."""
    color: str
    is_valid: bool
    hsl: Optional[str]
    foreground: str
    contrast_ratio: float
    meets_wcag_aa: bool
    warning: str = ''

    def to_dict(self):
        return {
            'color': self.color,
            'is_valid': self.is_valid,
            'hsl': self.hsl,
            'foreground': self.foreground,
            'contrast_ratio': round(self.contrast_ratio, 2),
            'meets_wcag_aa': self.meets_wcag_aa,
            'warning': self.warning,
        }


# =============================================================================
# HEX PARSING
# =============================================================================

def is_valid_hex(value) -> bool:
    """Return True iff value is '#' followed by exactly 3 or 6 hex digits."""
    if not isinstance(value, str):
        return False
    return _HEX_PATTERN.match(value) is not None


def normalize_hex(value) -> str:
    """
    Normalize a hex colour to the 6-digit, upper-case, '#'-prefixed form.

    Malformed input is not rejected; the best-effort result is returned
    and validation is left to is_valid_hex().

    Examples:
        'f00'     -> '#FF0000'
        '#0b3b66' -> '#0B3B66'
    """
    if not isinstance(value, str):
        return ''

    if not value.startswith('#'):
        value = '#' + value

    if len(value) == 4:
        value = '#' + value[1] * 2 + value[2] * 2 + value[3] * 2

    return value.upper()


def hex_to_rgb(value) -> Optional[Tuple[int, int, int]]:
    """Parse a hex colour into an (r, g, b) tuple, or None if unparseable."""
    match = _RGB_PATTERN.match(normalize_hex(value))
    if not match:
        return None
    return tuple(int(channel, 16) for channel in match.groups())


# =============================================================================
# HSL CONVERSION
# =============================================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rgb_to_hsl(r: int, g: int, b: int) -> HSL:
    """
    Convert RGB channels (0-255) to HSL.

    Hue is in degrees within [0, 360); saturation and lightness are
    integer percentages.
    """
    r, g, b = r / 255, g / 255, b / 255

    high = max(r, g, b)
    low = min(r, g, b)
    hue = saturation = 0.0
    lightness = (high + low) / 2

    if high != low:
        delta = high - low
        if lightness > 0.5:
            saturation = delta / (2 - high - low)
        else:
            saturation = delta / (high + low)

        if high == r:
            hue = ((g - b) / delta + (6 if g < b else 0)) / 6
        elif high == g:
            hue = ((b - r) / delta + 2) / 6
        else:
            hue = ((r - g) / delta + 4) / 6

    return HSL(
        hue=_round_half_up(hue * 360) % 360,
        saturation=_round_half_up(saturation * 100),
        lightness=_round_half_up(lightness * 100),
    )


def hex_to_hsl(value) -> Optional[HSL]:
    """Convert a hex colour to HSL, or None if it cannot be parsed."""
    rgb = hex_to_rgb(value)
    if rgb is None:
        return None
    return rgb_to_hsl(*rgb)


# =============================================================================
# WCAG CONTRAST
# =============================================================================

def _linearize(channel: int) -> float:
    c = channel / 255
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def get_luminance(r: int, g: int, b: int) -> float:
    """WCAG relative luminance (0-1) of an sRGB colour."""
    return (
        0.2126 * _linearize(r)
        + 0.7152 * _linearize(g)
        + 0.0722 * _linearize(b)
    )


def get_contrast_ratio(first, second) -> float:
    """
    WCAG contrast ratio between two hex colours, from 1 to 21.

    Returns 1.0 when either colour cannot be parsed.
    """
    rgb_first = hex_to_rgb(first)
    rgb_second = hex_to_rgb(second)

    if rgb_first is None or rgb_second is None:
        return 1.0

    l1 = get_luminance(*rgb_first)
    l2 = get_luminance(*rgb_second)

    lighter = max(l1, l2)
    darker = min(l1, l2)

    return (lighter + 0.05) / (darker + 0.05)


def get_contrast_color(background) -> str:
    """Pick pure white or pure black, whichever reads better on background."""
    white_contrast = get_contrast_ratio(background, WHITE)
    black_contrast = get_contrast_ratio(background, BLACK)

    # Ties go to white
    return WHITE if white_contrast >= black_contrast else BLACK


def meets_wcag_aa(background, foreground) -> bool:
    """True when the pair reaches the 4.5:1 WCAG AA ratio for normal text."""
    return get_contrast_ratio(background, foreground) >= WCAG_AA_RATIO


# =============================================================================
# THEME EVALUATION
# =============================================================================

def evaluate_theme_color(value) -> ThemeEvaluation:
    """
    Evaluate a candidate brand colour for the portal theme.

    Combines validation, HSL conversion for the CSS variables and the best
    achievable text contrast. A warning is attached whenever neither white
    nor black text reaches WCAG AA on the colour.
    """
    candidate = normalize_hex(value)
    valid = is_valid_hex(candidate)

    if not valid:
        logger.debug(f"Rejected theme colour {value!r}")
        return ThemeEvaluation(
            color=candidate,
            is_valid=False,
            hsl=None,
            foreground=WHITE,
            contrast_ratio=1.0,
            meets_wcag_aa=False,
            warning='Cor inválida. Use o formato #RRGGBB ou #RGB.',
        )

    foreground = get_contrast_color(candidate)
    best_contrast = get_contrast_ratio(candidate, foreground)
    warning = ''
    if best_contrast < WCAG_AA_RATIO:
        warning = (
            f"Contraste insuficiente ({best_contrast:.1f}:1). "
            f"Recomendado mínimo {WCAG_AA_RATIO}:1 para acessibilidade."
        )

    return ThemeEvaluation(
        color=candidate,
        is_valid=True,
        hsl=str(hex_to_hsl(candidate)),
        foreground=foreground,
        contrast_ratio=best_contrast,
        meets_wcag_aa=best_contrast >= WCAG_AA_RATIO,
        warning=warning,
    )
