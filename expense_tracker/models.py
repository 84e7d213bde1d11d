"""Domain types for the expense tracker.

Expenses, budget configuration and date ranges are plain dataclasses so the
aggregation engine can operate on them without any storage or UI context.
The coercion helpers here are shared by every layer that reads user or
stored input: they turn loosely typed values into numbers and dates
without raising.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd


class ExpenseValidationError(ValueError):
    """Raised when an expense form submission is incomplete or invalid."""


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class Category(str, Enum):
    FOOD = 'food'
    TRANSPORT = 'transport'
    SERVICES = 'services'
    LEISURE = 'leisure'
    HEALTH = 'health'
    OTHER = 'other'

    @classmethod
    def from_value(cls, value: Any) -> 'Category':
        """Resolve a stored category value, folding anything unknown into ``OTHER``."""
        if isinstance(value, Category):
            return value
        if value is None or not isinstance(value, str):
            return cls.OTHER
        key = value.strip().lower()
        if key in _CATEGORY_BY_VALUE:
            return _CATEGORY_BY_VALUE[key]
        return CATEGORY_ALIASES.get(key, cls.OTHER)


_CATEGORY_BY_VALUE = {member.value: member for member in Category}

# Spanish values written by earlier versions of the app
CATEGORY_ALIASES: Dict[str, Category] = {
    'comida': Category.FOOD,
    'transporte': Category.TRANSPORT,
    'servicios': Category.SERVICES,
    'ocio': Category.LEISURE,
    'salud': Category.HEALTH,
    'otros': Category.OTHER,
}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def parse_amount(value: Any) -> Optional[float]:
    """Convert different textual amount representations into floats.

    Accepts numbers and strings such as ``"1,234.50"``, ``"$ 1.234,50"`` or
    ``"(12.00)"``. Returns ``None`` when the value cannot be read as a
    finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.number)):
        if not np.isfinite(value):
            return None
        return float(value)
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    # Accounting negatives e.g. (123.45)
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = f"-{cleaned[1:-1]}"
    cleaned = re.sub(r"[^0-9,.\-]", "", cleaned)
    if ',' in cleaned and '.' in cleaned:
        # Whichever separator comes last is the decimal mark
        if cleaned.rfind(',') > cleaned.rfind('.'):
            cleaned = cleaned.replace('.', '').replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')
    elif ',' in cleaned:
        head, _, tail = cleaned.rpartition(',')
        if len(tail) == 3 and head:
            cleaned = cleaned.replace(',', '')
        else:
            cleaned = f"{head.replace(',', '')}.{tail}"
    parsed = pd.to_numeric([cleaned], errors='coerce')
    number = parsed[0]
    if pd.isna(number):
        return None
    return float(number)


def coerce_amount(value: Any) -> float:
    """Return ``value`` as a float, using ``0.0`` for anything unreadable."""
    parsed = parse_amount(value)
    return 0.0 if parsed is None else parsed


def coerce_date(value: Any) -> Optional[date]:
    """Return the calendar date of ``value`` or ``None`` when it is not a date.

    Time of day is discarded for datetimes and timestamps.
    """
    if value is None or value == "":
        return None
    if hasattr(value, 'to_pydatetime'):
        if pd.isna(value):
            return None
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    ts = pd.to_datetime(value.strip(), errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date()


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExpenseRecord:
    id: Optional[str]
    amount: Any
    date: Any
    description: str
    category: Any = Category.OTHER.value
    created_at: Optional[datetime] = None

    @property
    def category_key(self) -> Category:
        return Category.from_value(self.category)

    @property
    def amount_value(self) -> float:
        return coerce_amount(self.amount)

    @property
    def date_value(self) -> Optional[date]:
        return coerce_date(self.date)


@dataclass(frozen=True)
class Configuration:
    monthly_budget: float = 0.0
    fixed_expenses: float = 0.0
    spending_limit: float = 0.0

    @classmethod
    def field_names(cls) -> tuple:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_mapping(cls, data: Any) -> 'Configuration':
        """Build a configuration from stored data, treating bad values as unset."""
        if not isinstance(data, dict):
            return cls()
        return cls(**{name: coerce_setting(data.get(name)) for name in cls.field_names()})

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in self.field_names()}


def coerce_setting(value: Any) -> float:
    """Configuration values are non-negative; unparsable or negative input is ``0``."""
    return max(0.0, coerce_amount(value))


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Date range start {self.start} is after end {self.end}")

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> 'DateRange':
        """Range covering the whole calendar month containing ``today``."""
        today = today or date.today()
        last_day = calendar.monthrange(today.year, today.month)[1]
        return cls(today.replace(day=1), today.replace(day=last_day))

    @classmethod
    def clamped(cls, start: date, end: date, moved: str = 'start') -> 'DateRange':
        """Build a range from user input, moving the stale bound when they cross.

        ``moved`` names the bound the user just edited; the other one is
        dragged along to match it.
        """
        if start > end:
            if moved == 'end':
                start = end
            else:
                end = start
        return cls(start, end)

    def contains(self, value: Optional[date]) -> bool:
        return isinstance(value, date) and self.start <= value <= self.end


@dataclass
class ExpenseFields:
    """Validated form input ready to be written to the repository."""

    amount: float
    date: date
    description: str
    category: str

    def to_row(self) -> Dict[str, Any]:
        return {
            'amount': self.amount,
            'date': self.date.isoformat(),
            'description': self.description,
            'category': self.category,
        }


def validate_expense_fields(amount: Any, expense_date: Any, description: Any, category: Any) -> ExpenseFields:
    """Validate an expense submission.

    Raises:
        ExpenseValidationError: If the amount is missing or not positive, the
            date cannot be parsed, or the description is empty
    """
    parsed_amount = parse_amount(amount)
    if parsed_amount is None or parsed_amount <= 0:
        raise ExpenseValidationError("Amount must be a positive number")
    parsed_date = coerce_date(expense_date)
    if parsed_date is None:
        raise ExpenseValidationError("Date is missing or invalid")
    text = description.strip() if isinstance(description, str) else ''
    if not text:
        raise ExpenseValidationError("Description must not be empty")
    if isinstance(category, Category):
        category_value = category.value
    elif isinstance(category, str) and category.strip():
        category_value = category.strip()
    else:
        category_value = Category.OTHER.value
    return ExpenseFields(
        amount=round(parsed_amount, 2),
        date=parsed_date,
        description=text,
        category=category_value,
    )
