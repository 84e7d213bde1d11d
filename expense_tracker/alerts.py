"""Spending limit alerts.

Compares what has been spent in the selected period with the configured
spending limit and reports how close the user is to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

try:
    from .formatting import format_currency
    from .models import coerce_amount
except ImportError:
    from formatting import format_currency
    from models import coerce_amount


class Severity(str, Enum):
    INFO = 'info'
    WARNING = 'warning'
    CRITICAL = 'critical'

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 1, Severity.WARNING: 2, Severity.CRITICAL: 3}

# (threshold percent, severity, message template), highest first
ALERT_TIERS = (
    (100.0, Severity.CRITICAL, "Spending limit exceeded: {spent} of {limit} ({percent:.1f}%)"),
    (90.0, Severity.WARNING, "Very close to the spending limit: {spent} of {limit} ({percent:.1f}%)"),
    (80.0, Severity.INFO, "Approaching the spending limit: {spent} of {limit} ({percent:.1f}%)"),
)


@dataclass(frozen=True)
class Alert:
    severity: Severity
    percent: float
    message: str


def evaluate(
    total_spent: Any,
    spending_limit: Any,
    locale: Optional[str] = None,
    currency: Optional[str] = None,
) -> Optional[Alert]:
    """Return the alert for ``total_spent`` against ``spending_limit``.

    No alert is produced when the limit is unset (``<= 0``) or less than
    80% of it has been spent.
    """
    limit = coerce_amount(spending_limit)
    if limit <= 0:
        return None
    spent = coerce_amount(total_spent)
    percent = spent / limit * 100

    for threshold, severity, template in ALERT_TIERS:
        if percent >= threshold:
            message = template.format(
                spent=format_currency(spent, locale=locale, currency=currency),
                limit=format_currency(limit, locale=locale, currency=currency),
                percent=percent,
            )
            return Alert(severity=severity, percent=round(percent, 1), message=message)
    return None
