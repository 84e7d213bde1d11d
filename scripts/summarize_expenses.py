#!/usr/bin/env python3
"""Print the dashboard figures for one user from the local database."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_tracker.formatting import format_category, format_currency, format_percent
from expense_tracker.logger import setup_logger
from expense_tracker.models import DateRange, coerce_date
from expense_tracker.repository import SqliteExpenseRepository
from expense_tracker.session import build_summary
from expense_tracker.settings_store import JsonConfigurationPersistence


def main(user_id: str, start: date | None = None, end: date | None = None) -> None:
    default = DateRange.current_month()
    date_range = DateRange.clamped(start or default.start, end or default.end)
    records = SqliteExpenseRepository().list(user_id)
    configuration = JsonConfigurationPersistence().read(user_id)
    summary = build_summary(records, configuration, date_range)

    print(f"Expenses for {user_id}: {date_range.start} to {date_range.end}")
    print(f"  Records in range: {len(summary.filtered)} of {len(records)}")
    print(f"  Total in period:  {format_currency(summary.totals.period_total)}")
    print(f"  Today:            {format_currency(summary.totals.today_total)}")
    print(f"  Last 7 days:      {format_currency(summary.totals.weekly_total)}")

    status = summary.budget_status
    if status.is_set:
        print(f"  Remaining budget: {format_currency(status.remaining)} ({format_percent(status.used_percent)} used)")
    else:
        print("  Remaining budget: - (no budget set)")

    if summary.alert is not None:
        print(f"\n[{summary.alert.severity.value.upper()}] {summary.alert.message}")

    if not summary.breakdown:
        print("\nNo expenses in the selected period.")
        return
    print("\nBy category:")
    for bucket in summary.breakdown:
        print(f"  {format_category(bucket.category):<12} {format_currency(bucket.amount):>16} {format_percent(bucket.percent_of_total):>7}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Summarize one user\'s expenses.')
    parser.add_argument('--user', required=True, help='User id whose expenses to summarize')
    parser.add_argument('--from', dest='start', type=coerce_date, default=None, help='First day (YYYY-MM-DD)')
    parser.add_argument('--to', dest='end', type=coerce_date, default=None, help='Last day (YYYY-MM-DD)')
    args = parser.parse_args()
    setup_logger("summarize_expenses")
    main(args.user, start=args.start, end=args.end)
