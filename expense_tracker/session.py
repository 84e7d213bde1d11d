"""Session host that keeps the dashboard figures in step with their inputs.

The session owns an explicit, immutable :class:`DashboardState` (signed-in
user, latest record snapshot, latest configuration and selected date range).
Every input change produces a new state and a full recomputation from it,
so the figures handed to the presenter always pair the newest records with
the newest configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

try:
    from .aggregation import (
        BudgetStatus,
        CategoryBucket,
        Totals,
        compute_budget_status,
        compute_category_breakdown,
        compute_totals,
        filter_by_date,
    )
    from .alerts import Alert, evaluate
    from .models import Configuration, DateRange, ExpenseRecord
    from .repository import SqliteExpenseRepository
    from .settings_store import ConfigurationStore, JsonConfigurationPersistence
except ImportError:
    from aggregation import (
        BudgetStatus,
        CategoryBucket,
        Totals,
        compute_budget_status,
        compute_category_breakdown,
        compute_totals,
        filter_by_date,
    )
    from alerts import Alert, evaluate
    from models import Configuration, DateRange, ExpenseRecord
    from repository import SqliteExpenseRepository
    from settings_store import ConfigurationStore, JsonConfigurationPersistence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardState:
    user_id: Optional[str] = None
    records: Tuple[ExpenseRecord, ...] = ()
    configuration: Configuration = field(default_factory=Configuration)
    date_range: DateRange = field(default_factory=DateRange.current_month)


@dataclass(frozen=True)
class DashboardSummary:
    date_range: DateRange
    configuration: Configuration
    filtered: List[ExpenseRecord]
    totals: Totals
    budget_status: BudgetStatus
    breakdown: List[CategoryBucket]
    alert: Optional[Alert]


def build_summary(
    records: Sequence[ExpenseRecord],
    configuration: Configuration,
    date_range: DateRange,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    locale: Optional[str] = None,
    currency: Optional[str] = None,
) -> DashboardSummary:
    """Run the whole aggregation pipeline for one set of inputs."""
    now = now or datetime.now()
    today = today or now.date()
    filtered = filter_by_date(records, date_range)
    totals = compute_totals(filtered, configuration.fixed_expenses, today, now)
    return DashboardSummary(
        date_range=date_range,
        configuration=configuration,
        filtered=filtered,
        totals=totals,
        budget_status=compute_budget_status(totals.period_total, configuration.monthly_budget),
        breakdown=compute_category_breakdown(filtered),
        alert=evaluate(totals.period_total, configuration.spending_limit, locale=locale, currency=currency),
    )


Presenter = Callable[[Optional[DashboardSummary]], None]


class ExpenseTrackerSession:
    """Reacts to login/logout, record snapshots, settings edits and range changes."""

    def __init__(
        self,
        repository: SqliteExpenseRepository,
        persistence: Optional[JsonConfigurationPersistence] = None,
        presenter: Optional[Presenter] = None,
        clock: Callable[[], datetime] = datetime.now,
        locale: Optional[str] = None,
        currency: Optional[str] = None,
    ):
        self.repository = repository
        self.persistence = persistence
        self.presenter = presenter
        self.clock = clock
        self.locale = locale
        self.currency = currency
        self.settings: Optional[ConfigurationStore] = None
        self.summary: Optional[DashboardSummary] = None
        self.state = DashboardState(date_range=DateRange.current_month(clock().date()))
        self._cancel_records: Optional[Callable[[], None]] = None
        self._cancel_settings: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Auth signals
    # ------------------------------------------------------------------

    def logged_in(self, user_id: str) -> None:
        self._cancel_subscriptions()
        self.settings = ConfigurationStore(user_id, self.persistence)
        self.state = DashboardState(
            user_id=user_id,
            configuration=self.settings.get(),
            date_range=self.state.date_range,
        )
        self._cancel_settings = self.settings.subscribe(self._on_configuration)
        # The repository delivers the first snapshot synchronously, which
        # triggers the first recomputation.
        self._cancel_records = self.repository.subscribe(user_id, self._on_snapshot)
        logger.info("Session started for user %s", user_id)

    def logged_out(self) -> None:
        self._cancel_subscriptions()
        user_id = self.state.user_id
        self.settings = None
        self.summary = None
        self.state = DashboardState(date_range=DateRange.current_month(self.clock().date()))
        if self.presenter is not None:
            self.presenter(None)
        logger.info("Session cleared for user %s", user_id)

    def _cancel_subscriptions(self) -> None:
        if self._cancel_records is not None:
            self._cancel_records()
            self._cancel_records = None
        if self._cancel_settings is not None:
            self._cancel_settings()
            self._cancel_settings = None

    # ------------------------------------------------------------------
    # Input changes
    # ------------------------------------------------------------------

    def _on_snapshot(self, records: Sequence[ExpenseRecord]) -> None:
        self.state = replace(self.state, records=tuple(records))
        self.recompute()

    def _on_configuration(self, configuration: Configuration, changed: Tuple[str, ...]) -> None:
        self.state = replace(self.state, configuration=configuration)
        self.recompute()

    def set_date_range(self, start: date, end: date, moved: str = 'start') -> DateRange:
        """Select a new range, dragging the other bound along if they cross."""
        date_range = DateRange.clamped(start, end, moved=moved)
        self.state = replace(self.state, date_range=date_range)
        self.recompute()
        return date_range

    def update_configuration(self, partial: Optional[Mapping[str, Any]] = None, **fields: Any) -> Configuration:
        return self._require_settings().set(partial, **fields)

    def reset_configuration(self, field_name: str) -> Configuration:
        return self._require_settings().reset(field_name)

    def _require_settings(self) -> ConfigurationStore:
        if self.settings is None:
            raise ValueError("User is not authenticated")
        return self.settings

    # ------------------------------------------------------------------
    # Expense operations for the signed-in user
    # ------------------------------------------------------------------

    def add_expense(self, fields: Mapping[str, Any]) -> str:
        return self.repository.create(self.state.user_id, fields)

    def edit_expense(self, expense_id: str, fields: Mapping[str, Any]) -> bool:
        return self.repository.update(self.state.user_id, expense_id, fields)

    def remove_expense(self, expense_id: str) -> bool:
        return self.repository.delete(self.state.user_id, expense_id)

    # ------------------------------------------------------------------
    # Recomputation
    # ------------------------------------------------------------------

    def recompute(self) -> Optional[DashboardSummary]:
        if self.state.user_id is None:
            return None
        now = self.clock()
        state = self.state
        self.summary = build_summary(
            state.records,
            state.configuration,
            state.date_range,
            today=now.date(),
            now=now,
            locale=self.locale,
            currency=self.currency,
        )
        logger.debug(
            "Recomputed dashboard for user %s: %d of %d records in range",
            state.user_id, len(self.summary.filtered), len(state.records),
        )
        if self.presenter is not None:
            self.presenter(self.summary)
        return self.summary
