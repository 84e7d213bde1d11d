"""Streamlit host page for the expense tracker.

Wires the auth gateway, repository, settings store and session together and
renders whatever the session hands back. All figures come from the
aggregation engine; this page only lays them out.

Run with::

    streamlit run expense_tracker/dashboard.py
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from expense_tracker.aggregation import BudgetStatus, search_expenses, list_total
from expense_tracker.alerts import Alert, Severity
from expense_tracker.auth import AuthGateway
from expense_tracker.formatting import format_category, format_currency, format_percent
from expense_tracker.logger import setup_logger
from expense_tracker.models import Category, ExpenseRecord, ExpenseValidationError
from expense_tracker.repository import SqliteExpenseRepository
from expense_tracker.session import DashboardSummary, ExpenseTrackerSession
from expense_tracker.settings_store import JsonConfigurationPersistence
from expense_tracker.visualization import (
    breakdown_table,
    budget_progress_width,
    create_category_doughnut,
)

ALERT_STYLES: Dict[Severity, str] = {
    Severity.CRITICAL: 'error',
    Severity.WARNING: 'warning',
    Severity.INFO: 'info',
}

SETTING_LABELS = {
    'monthly_budget': "Monthly budget",
    'fixed_expenses': "Fixed expenses",
    'spending_limit': "Spending limit",
}

SETTING_KEY = "setting_{}"
RANGE_FROM_KEY = "range_from"
RANGE_TO_KEY = "range_to"
EDITING_KEY = "editing_expense"
PENDING_DELETE_KEY = "pending_delete"


def budget_caption(status: BudgetStatus) -> str:
    """Text shown under the remaining-budget metric."""
    if not status.is_set:
        return "No budget set"
    return f"{format_percent(status.used_percent)} of budget used"


def render_alert(alert: Optional[Alert]) -> None:
    if alert is None:
        return
    getattr(st, ALERT_STYLES[alert.severity])(alert.message)


def _get_app() -> ExpenseTrackerSession:
    if 'tracker_session' not in st.session_state:
        session = ExpenseTrackerSession(SqliteExpenseRepository(), JsonConfigurationPersistence())
        gateway = AuthGateway()
        gateway.subscribe(session)
        st.session_state.tracker_session = session
        st.session_state.auth_gateway = gateway
    return st.session_state.tracker_session


def _forget_user_widgets() -> None:
    """Drop widget values that belong to the previous user."""
    keys = [SETTING_KEY.format(name) for name in SETTING_LABELS]
    keys += [RANGE_FROM_KEY, RANGE_TO_KEY, EDITING_KEY, PENDING_DELETE_KEY]
    for key in keys:
        st.session_state.pop(key, None)


def _render_sign_in(gateway: AuthGateway) -> None:
    st.sidebar.subheader("Account")
    if gateway.current_user is None:
        user_id = st.sidebar.text_input("User id", key="sign_in_user")
        if st.sidebar.button("Sign in") and user_id.strip():
            _forget_user_widgets()
            gateway.sign_in(user_id)
            st.rerun()
    else:
        st.sidebar.write(f"Signed in as **{gateway.current_user}**")
        if st.sidebar.button("Sign out"):
            _forget_user_widgets()
            gateway.sign_out()
            st.rerun()


# ---------------------------------------------------------------------------
# Widget callbacks
# ---------------------------------------------------------------------------


def _apply_setting(session: ExpenseTrackerSession, name: str) -> None:
    session.update_configuration({name: st.session_state[SETTING_KEY.format(name)]})


def _reset_setting(session: ExpenseTrackerSession, name: str) -> None:
    session.reset_configuration(name)
    st.session_state[SETTING_KEY.format(name)] = 0.0


def _apply_date_range(session: ExpenseTrackerSession, moved: str) -> None:
    selected = session.set_date_range(
        st.session_state[RANGE_FROM_KEY],
        st.session_state[RANGE_TO_KEY],
        moved=moved,
    )
    st.session_state[RANGE_FROM_KEY] = selected.start
    st.session_state[RANGE_TO_KEY] = selected.end


def _start_edit(expense_id: str) -> None:
    st.session_state[EDITING_KEY] = expense_id
    st.session_state.pop(PENDING_DELETE_KEY, None)


def _request_delete(expense_id: str) -> None:
    st.session_state[PENDING_DELETE_KEY] = expense_id


def _cancel_delete() -> None:
    st.session_state.pop(PENDING_DELETE_KEY, None)


def _confirm_delete(session: ExpenseTrackerSession, expense_id: str) -> None:
    session.remove_expense(expense_id)
    st.session_state.pop(PENDING_DELETE_KEY, None)
    if st.session_state.get(EDITING_KEY) == expense_id:
        st.session_state.pop(EDITING_KEY, None)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _render_settings(session: ExpenseTrackerSession) -> None:
    st.sidebar.subheader("Budget settings")
    current = session.settings.get()
    for name, label in SETTING_LABELS.items():
        key = SETTING_KEY.format(name)
        if key not in st.session_state:
            st.session_state[key] = float(getattr(current, name))
        col1, col2 = st.sidebar.columns([3, 1])
        with col1:
            st.number_input(label, min_value=0.0, step=100.0, key=key, on_change=_apply_setting, args=(session, name))
        with col2:
            st.button("Reset", key=f"reset_{name}", on_click=_reset_setting, args=(session, name))


def _render_date_filter(session: ExpenseTrackerSession) -> None:
    current = session.state.date_range
    if RANGE_FROM_KEY not in st.session_state:
        st.session_state[RANGE_FROM_KEY] = current.start
    if RANGE_TO_KEY not in st.session_state:
        st.session_state[RANGE_TO_KEY] = current.end
    col1, col2 = st.columns(2)
    with col1:
        st.date_input("From", key=RANGE_FROM_KEY, on_change=_apply_date_range, args=(session, 'start'))
    with col2:
        st.date_input("To", key=RANGE_TO_KEY, on_change=_apply_date_range, args=(session, 'end'))


def _render_summary(summary: DashboardSummary) -> None:
    totals = summary.totals
    status = summary.budget_status
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total in period", format_currency(totals.period_total))
    col2.metric("Today", format_currency(totals.today_total))
    col3.metric("Last 7 days", format_currency(totals.weekly_total))
    col4.metric(
        "Remaining budget",
        format_currency(status.remaining) if status.is_set else "-",
    )
    st.caption(budget_caption(status))
    if status.is_set:
        st.progress(int(budget_progress_width(status.used_percent)))
    render_alert(summary.alert)


def _render_breakdown(summary: DashboardSummary) -> None:
    st.subheader("Spending by category")
    st.plotly_chart(create_category_doughnut(summary.breakdown))
    if not summary.breakdown:
        st.info("No expenses in the selected period")
        return
    st.dataframe(breakdown_table(summary.breakdown).drop(columns=['Color']), hide_index=True)


def _editing_record(session: ExpenseTrackerSession) -> Optional[ExpenseRecord]:
    editing_id = st.session_state.get(EDITING_KEY)
    if editing_id is None:
        return None
    record = next((r for r in session.state.records if r.id == editing_id), None)
    if record is None:
        st.session_state.pop(EDITING_KEY, None)
    return record


def _render_expense_form(session: ExpenseTrackerSession) -> None:
    record = _editing_record(session)
    suffix = record.id if record is not None else 'new'
    categories = [member.value for member in Category]

    st.subheader("Edit expense" if record is not None else "New expense")
    with st.form(f"expense_form_{suffix}", clear_on_submit=record is None):
        amount = st.text_input(
            "Amount",
            value=f"{record.amount_value:.2f}" if record is not None else "",
            key=f"expense_amount_{suffix}",
        )
        expense_date = st.date_input(
            "Date",
            value=(record.date_value if record is not None else None) or date.today(),
            key=f"expense_date_{suffix}",
        )
        description = st.text_input(
            "Description",
            value=record.description if record is not None else "",
            key=f"expense_description_{suffix}",
        )
        category = st.selectbox(
            "Category",
            options=categories,
            index=categories.index(record.category_key.value) if record is not None else 0,
            format_func=format_category,
            key=f"expense_category_{suffix}",
        )
        if record is None:
            submitted = st.form_submit_button("Add expense")
            cancelled = False
        else:
            submitted = st.form_submit_button("Save changes")
            cancelled = st.form_submit_button("Cancel")

    if cancelled:
        st.session_state.pop(EDITING_KEY, None)
        st.rerun()
    if not submitted:
        return
    fields = {
        'amount': amount,
        'date': expense_date,
        'description': description,
        'category': category,
    }
    try:
        if record is None:
            session.add_expense(fields)
        else:
            session.edit_expense(record.id, fields)
    except ExpenseValidationError as exc:
        st.error(str(exc))
    else:
        st.session_state.pop(EDITING_KEY, None)
        st.rerun()


def _render_expense_list(session: ExpenseTrackerSession) -> None:
    st.subheader("Expenses")
    col1, col2 = st.columns([3, 1])
    with col1:
        term = st.text_input("Search", key="expense_search")
    with col2:
        category = st.selectbox(
            "Category filter",
            options=['all'] + [member.value for member in Category],
            format_func=lambda value: "All" if value == 'all' else format_category(value),
        )
    records = search_expenses(session.state.records, term, category)
    if not records:
        st.info("No expenses found")
    pending = st.session_state.get(PENDING_DELETE_KEY)
    for record in records:
        col_date, col_desc, col_cat, col_amount, col_edit, col_delete = st.columns([2, 4, 2, 2, 1, 1])
        col_date.write(str(record.date_value or ''))
        col_desc.write(record.description)
        col_cat.write(format_category(record.category))
        col_amount.write(format_currency(record.amount_value))
        col_edit.button("Edit", key=f"edit_{record.id}", on_click=_start_edit, args=(record.id,))
        col_delete.button("Delete", key=f"delete_{record.id}", on_click=_request_delete, args=(record.id,))
        if pending == record.id:
            st.warning(f"Delete \"{record.description}\"? This cannot be undone.")
            col_confirm, col_cancel = st.columns(2)
            col_confirm.button(
                "Confirm delete",
                key=f"confirm_delete_{record.id}",
                type="primary",
                on_click=_confirm_delete,
                args=(session, record.id),
            )
            col_cancel.button("Cancel", key=f"cancel_delete_{record.id}", on_click=_cancel_delete)
    total = list_total(records, session.state.configuration.fixed_expenses)
    st.markdown(f"**Total (including fixed expenses):** {format_currency(total)}")


def main() -> None:
    st.set_page_config(page_title="Expense Tracker", page_icon="💰", layout="wide")
    setup_logger()
    session = _get_app()
    gateway: AuthGateway = st.session_state.auth_gateway

    _render_sign_in(gateway)
    if session.state.user_id is None:
        st.title("💰 Expense Tracker")
        st.info("Sign in to see your expenses.")
        return

    _render_settings(session)
    st.title("💰 Expense Tracker")
    _render_date_filter(session)
    summary = session.summary or session.recompute()
    _render_summary(summary)
    _render_breakdown(summary)
    _render_expense_form(session)
    _render_expense_list(session)


if __name__ == "__main__":
    main()
