"""Formatting utilities for currency and text display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

try:
    from .config import CURRENCY, LOCALE
    from .models import Category, parse_amount
except ImportError:
    from config import CURRENCY, LOCALE
    from models import Category, parse_amount


@dataclass(frozen=True)
class LocaleFormat:
    thousands_sep: str
    decimal_sep: str
    symbol_first: bool = True
    symbol_space: bool = True


LOCALE_FORMATS: Dict[str, LocaleFormat] = {
    'es-AR': LocaleFormat(thousands_sep='.', decimal_sep=','),
    'pt-BR': LocaleFormat(thousands_sep='.', decimal_sep=','),
    'es-ES': LocaleFormat(thousands_sep='.', decimal_sep=',', symbol_first=False),
    'en-US': LocaleFormat(thousands_sep=',', decimal_sep='.', symbol_space=False),
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    'ARS': '$',
    'BRL': 'R$',
    'USD': '$',
    'EUR': '€',
}


def _locale_format(locale: str) -> LocaleFormat:
    return LOCALE_FORMATS.get(locale, LOCALE_FORMATS['en-US'])


def format_currency(
    amount: Any,
    locale: Optional[str] = None,
    currency: Optional[str] = None,
    include_sign: bool = True,
) -> str:
    """Format a currency amount for the configured locale.

    Always renders two fraction digits and thousands separators. Missing
    or unreadable amounts format as zero.

    Args:
        amount: The amount to format
        locale: Locale tag such as ``"es-AR"``; defaults to ``config.LOCALE``
        currency: ISO currency code; defaults to ``config.CURRENCY``
        include_sign: Whether to include the currency symbol

    Returns:
        Formatted currency string

    Example:
        >>> format_currency(1234.56, locale='es-AR', currency='ARS')
        '$ 1.234,56'
        >>> format_currency(1234.56, locale='en-US', currency='USD')
        '$1,234.56'
    """
    value = parse_amount(amount)
    if value is None:
        value = 0.0
    fmt = _locale_format(locale or LOCALE)
    negative = round(value, 2) < 0
    digits = f"{abs(value):,.2f}"
    integer_part, fraction = digits.split('.')
    formatted = f"{integer_part.replace(',', fmt.thousands_sep)}{fmt.decimal_sep}{fraction}"
    if include_sign:
        code = currency or CURRENCY
        symbol = CURRENCY_SYMBOLS.get(code, code)
        gap = ' ' if fmt.symbol_space else ''
        formatted = f"{symbol}{gap}{formatted}" if fmt.symbol_first else f"{formatted}{gap}{symbol}"
    return f"-{formatted}" if negative else formatted


def format_percent(value: Any, digits: int = 1) -> str:
    """Format a percentage with a fixed number of decimals (e.g. ``"66.7%"``)."""
    return f"{(parse_amount(value) or 0.0):.{digits}f}%"


def format_category(category: Any) -> str:
    """Human label for a stored category value.

    Unknown values are labelled as ``Other``; a missing value renders as
    ``Uncategorized``.
    """
    if category is None or (isinstance(category, str) and not category.strip()):
        return 'Uncategorized'
    return Category.from_value(category).value.capitalize()
