import types
from datetime import date, datetime
from pathlib import Path

import pytest

pytest.importorskip('streamlit')

from streamlit.testing.v1 import AppTest  # noqa: E402

from expense_tracker import dashboard  # noqa: E402
from expense_tracker.aggregation import BudgetStatus  # noqa: E402
from expense_tracker.alerts import Alert, Severity  # noqa: E402
from expense_tracker.auth import AuthGateway  # noqa: E402
from expense_tracker.models import DateRange  # noqa: E402
from expense_tracker.repository import SqliteExpenseRepository  # noqa: E402
from expense_tracker.session import ExpenseTrackerSession  # noqa: E402
from expense_tracker.settings_store import JsonConfigurationPersistence  # noqa: E402

APP_PATH = str(Path(__file__).resolve().parents[1] / 'expense_tracker' / 'dashboard.py')


def test_budget_caption():
    assert dashboard.budget_caption(BudgetStatus.unset()) == "No budget set"
    status = BudgetStatus(is_set=True, remaining=250.0, used_percent=75.0)
    assert dashboard.budget_caption(status) == "75.0% of budget used"


@pytest.mark.parametrize('severity, style', [
    (Severity.CRITICAL, 'error'),
    (Severity.WARNING, 'warning'),
    (Severity.INFO, 'info'),
])
def test_render_alert_picks_style_by_severity(monkeypatch, severity, style):
    calls = []
    fake_st = types.SimpleNamespace(
        error=lambda msg: calls.append(('error', msg)),
        warning=lambda msg: calls.append(('warning', msg)),
        info=lambda msg: calls.append(('info', msg)),
    )
    monkeypatch.setattr(dashboard, 'st', fake_st)

    dashboard.render_alert(Alert(severity=severity, percent=95.0, message='Careful'))
    assert calls == [(style, 'Careful')]


def test_render_alert_ignores_missing_alert(monkeypatch):
    monkeypatch.setattr(dashboard, 'st', types.SimpleNamespace())
    dashboard.render_alert(None)


def _fixed_clock():
    return datetime(2024, 5, 10, 12, 0)


@pytest.fixture
def signed_in(tmp_path):
    session = ExpenseTrackerSession(
        SqliteExpenseRepository(tmp_path / 'expenses.db'),
        JsonConfigurationPersistence(tmp_path / 'settings.json'),
        clock=_fixed_clock,
    )
    gateway = AuthGateway()
    gateway.subscribe(session)
    gateway.sign_in('alice')
    return session, gateway


def _run_app(session, gateway):
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.session_state['tracker_session'] = session
    at.session_state['auth_gateway'] = gateway
    at.run()
    assert not at.exception
    return at


def _button(at, label):
    return next(button for button in at.button if button.label == label)


def _groceries(session):
    return session.add_expense({
        'amount': '120.50',
        'date': date(2024, 5, 3),
        'description': 'Groceries',
        'category': 'food',
    })


def test_page_asks_for_sign_in_without_user(tmp_path):
    session = ExpenseTrackerSession(SqliteExpenseRepository(tmp_path / 'expenses.db'), clock=_fixed_clock)
    gateway = AuthGateway()
    gateway.subscribe(session)
    at = _run_app(session, gateway)
    assert any('Sign in' in info.value for info in at.info)


def test_setting_reset_sticks_across_reruns(signed_in):
    session, gateway = signed_in
    at = _run_app(session, gateway)

    at.number_input(key='setting_monthly_budget').set_value(1000.0).run()
    assert session.settings.get().monthly_budget == 1000.0

    at.button(key='reset_monthly_budget').click().run()
    assert session.settings.get().monthly_budget == 0.0
    assert at.number_input(key='setting_monthly_budget').value == 0.0

    at.run()
    assert session.settings.get().monthly_budget == 0.0


def test_date_clamp_survives_rerun(signed_in):
    session, gateway = signed_in
    at = _run_app(session, gateway)
    assert session.state.date_range == DateRange(date(2024, 5, 1), date(2024, 5, 31))

    at.date_input(key='range_from').set_value(date(2024, 6, 10)).run()
    expected = DateRange(date(2024, 6, 10), date(2024, 6, 10))
    assert session.state.date_range == expected

    at.run()
    assert session.state.date_range == expected
    assert at.date_input(key='range_from').value == date(2024, 6, 10)
    assert at.date_input(key='range_to').value == date(2024, 6, 10)


def test_add_expense_through_form(signed_in):
    session, gateway = signed_in
    at = _run_app(session, gateway)

    at.text_input(key='expense_amount_new').set_value('120.50')
    at.date_input(key='expense_date_new').set_value(date(2024, 5, 3))
    at.text_input(key='expense_description_new').set_value('Groceries')
    _button(at, 'Add expense').click().run()

    assert [r.description for r in session.state.records] == ['Groceries']
    assert session.summary.totals.period_total == pytest.approx(120.5)


def test_invalid_expense_shows_error(signed_in):
    session, gateway = signed_in
    at = _run_app(session, gateway)

    at.text_input(key='expense_amount_new').set_value('0')
    at.text_input(key='expense_description_new').set_value('Nothing')
    _button(at, 'Add expense').click().run()

    assert session.state.records == ()
    assert len(at.error) == 1


def test_edit_prefills_form_and_saves(signed_in):
    session, gateway = signed_in
    expense_id = _groceries(session)
    at = _run_app(session, gateway)

    at.button(key=f'edit_{expense_id}').click().run()
    assert at.text_input(key=f'expense_amount_{expense_id}').value == '120.50'
    assert at.text_input(key=f'expense_description_{expense_id}').value == 'Groceries'

    at.text_input(key=f'expense_amount_{expense_id}').set_value('99')
    _button(at, 'Save changes').click().run()

    assert len(session.state.records) == 1
    assert session.state.records[0].amount == pytest.approx(99)
    assert 'expense_amount_new' in [widget.key for widget in at.text_input]


def test_edit_can_be_cancelled(signed_in):
    session, gateway = signed_in
    expense_id = _groceries(session)
    at = _run_app(session, gateway)

    at.button(key=f'edit_{expense_id}').click().run()
    _button(at, 'Cancel').click().run()

    assert session.state.records[0].amount == pytest.approx(120.5)
    assert 'expense_amount_new' in [widget.key for widget in at.text_input]


def test_delete_requires_confirmation(signed_in):
    session, gateway = signed_in
    expense_id = _groceries(session)
    at = _run_app(session, gateway)

    at.button(key=f'delete_{expense_id}').click().run()
    assert len(session.state.records) == 1
    assert len(at.warning) == 1

    at.button(key=f'cancel_delete_{expense_id}').click().run()
    assert len(session.state.records) == 1
    assert f'confirm_delete_{expense_id}' not in [button.key for button in at.button]

    at.button(key=f'delete_{expense_id}').click().run()
    at.button(key=f'confirm_delete_{expense_id}').click().run()
    assert session.state.records == ()
