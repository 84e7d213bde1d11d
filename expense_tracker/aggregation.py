"""Expense aggregation engine.

Pure functions that turn a snapshot of expense records into the figures the
dashboard shows: the records inside a date range, period/today/week totals,
budget usage and the per-category breakdown. Nothing here performs I/O or
keeps state between calls, so each function can be re-run whenever the
records, the configuration or the selected range change.

Records are loaded into a small pandas DataFrame for the numeric work.
Amounts that are missing or not numeric count as ``0`` and records whose
date cannot be read are left out of every date-bounded subset.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

try:
    from .models import Category, DateRange, ExpenseRecord, coerce_amount, coerce_date
except ImportError:
    from models import Category, DateRange, ExpenseRecord, coerce_amount, coerce_date

FRAME_COLUMNS = ['id', 'Amount', 'Date', 'Description', 'Category']


@dataclass(frozen=True)
class Totals:
    period_total: float = 0.0
    today_total: float = 0.0
    weekly_total: float = 0.0


@dataclass(frozen=True)
class BudgetStatus:
    """Budget usage for the selected period.

    When no monthly budget is configured ``is_set`` is ``False`` and both
    ``remaining`` and ``used_percent`` are ``None``; callers render a
    neutral state instead of ``0%``.
    """

    is_set: bool
    remaining: Optional[float] = None
    used_percent: Optional[float] = None

    @classmethod
    def unset(cls) -> 'BudgetStatus':
        return cls(is_set=False)


@dataclass(frozen=True)
class CategoryBucket:
    category: Category
    amount: float
    percent_of_total: float


def records_to_frame(records: Iterable[ExpenseRecord]) -> pd.DataFrame:
    """Build a DataFrame with coerced amounts, calendar dates and folded categories."""
    rows = [
        {
            'id': record.id,
            'Amount': record.amount,
            'Date': record.date,
            'Description': record.description,
            'Category': record.category,
        }
        for record in records
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df['Amount'] = df['Amount'].map(coerce_amount).astype(float)
    df['Date'] = df['Date'].map(coerce_date).astype(object)
    df['Category'] = df['Category'].map(lambda value: Category.from_value(value).value).astype(object)
    return df


def filter_by_date(records: Sequence[ExpenseRecord], date_range: DateRange) -> List[ExpenseRecord]:
    """Return the records dated within ``date_range`` (both ends inclusive).

    Input order is preserved. Records without a readable date are dropped.
    """
    records = list(records)
    if not records:
        return []
    frame = records_to_frame(records)
    mask = frame['Date'].map(date_range.contains)
    return [record for record, keep in zip(records, mask) if keep]


def _week_start(now: Any) -> date:
    """First calendar date whose midnight falls on or after ``now - 7 days``."""
    if isinstance(now, datetime):
        moment = now
    else:
        moment = datetime.combine(coerce_date(now) or date.today(), time.min)
    cutoff = moment - timedelta(days=7)
    if cutoff.time() == time.min:
        return cutoff.date()
    return cutoff.date() + timedelta(days=1)


def compute_totals(
    filtered: Sequence[ExpenseRecord],
    fixed_expenses: Any = 0.0,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Totals:
    """Compute the period, today and last-seven-days totals.

    Fixed expenses are added once to the period total regardless of the
    range length. They are monthly, so the daily and weekly figures leave
    them out.
    """
    today = coerce_date(today) or date.today()
    now = now or datetime.now()
    frame = records_to_frame(filtered)
    amounts = frame['Amount']

    period_total = float(amounts.sum()) + max(0.0, coerce_amount(fixed_expenses))
    on_today = frame['Date'].map(lambda value: value == today).astype(bool)
    today_total = float(amounts[on_today].sum())
    week_start = _week_start(now)
    in_week = frame['Date'].map(lambda value: isinstance(value, date) and value >= week_start).astype(bool)
    weekly_total = float(amounts[in_week].sum())

    return Totals(
        period_total=period_total,
        today_total=today_total,
        weekly_total=weekly_total,
    )


def compute_budget_status(period_total: Any, monthly_budget: Any) -> BudgetStatus:
    """Remaining budget and percentage used.

    ``used_percent`` is not clamped, values above 100 signal overspend.
    ``remaining`` never goes below zero.
    """
    budget = coerce_amount(monthly_budget)
    if budget <= 0:
        return BudgetStatus.unset()
    total = coerce_amount(period_total)
    return BudgetStatus(
        is_set=True,
        remaining=max(0.0, budget - total),
        used_percent=total / budget * 100,
    )


def compute_category_breakdown(filtered: Sequence[ExpenseRecord]) -> List[CategoryBucket]:
    """Per-category totals sorted from largest to smallest.

    Categories with equal totals keep the order in which they first appear
    in ``filtered``. Percentages are ``0`` when the overall total is ``0``.
    """
    frame = records_to_frame(filtered)
    if frame.empty:
        return []

    grouped = frame.groupby('Category', sort=False)['Amount'].sum()
    total_amount = float(frame['Amount'].sum())
    # sorted() is stable, so ties stay in first-seen order
    ordered = sorted(grouped.items(), key=lambda item: -item[1])

    return [
        CategoryBucket(
            category=Category.from_value(category),
            amount=float(amount),
            percent_of_total=(float(amount) / total_amount * 100) if total_amount else 0.0,
        )
        for category, amount in ordered
    ]


def _amount_text(value: float) -> str:
    return f"{value:f}".rstrip('0').rstrip('.')


def search_expenses(
    records: Sequence[ExpenseRecord],
    term: str = '',
    category: Any = None,
) -> List[ExpenseRecord]:
    """Filter the expense list by free text and, optionally, one category.

    ``term`` matches the description case-insensitively, the stored category
    value or the amount as typed. ``category`` of ``None`` or ``"all"``
    keeps every category.
    """
    needle = (term or '').strip().lower()
    wanted = None if category in (None, '', 'all') else Category.from_value(category)

    matches: List[ExpenseRecord] = []
    for record in records:
        if wanted is not None and record.category_key is not wanted:
            continue
        if needle:
            haystacks = (
                (record.description or '').lower(),
                str(record.category or '').lower(),
                _amount_text(record.amount_value),
            )
            if not any(needle in text for text in haystacks):
                continue
        matches.append(record)
    return matches


def list_total(records: Sequence[ExpenseRecord], fixed_expenses: Any = 0.0) -> float:
    """Sum of the listed expenses plus the monthly fixed expenses."""
    return sum(record.amount_value for record in records) + max(0.0, coerce_amount(fixed_expenses))
