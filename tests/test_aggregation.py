from datetime import date, datetime

import pytest

from expense_tracker import aggregation as agg
from expense_tracker.models import Category, DateRange, ExpenseRecord


def _record(amount, day, category='food', description='Expense', record_id=None):
    return ExpenseRecord(
        id=record_id or f"{day}-{category}-{amount}",
        amount=amount,
        date=day,
        description=description,
        category=category,
    )


def _may():
    return DateRange(date(2024, 5, 1), date(2024, 5, 31))


def test_filter_by_date_is_inclusive_and_keeps_order():
    records = [
        _record(5, '2024-05-31', record_id='last'),
        _record(1, '2024-04-30', record_id='before'),
        _record(2, '2024-05-01', record_id='first'),
        _record(3, '2024-06-01', record_id='after'),
        _record(4, '2024-05-15', record_id='middle'),
    ]
    result = agg.filter_by_date(records, _may())
    assert [r.id for r in result] == ['last', 'first', 'middle']
    assert len(result) <= len(records)


def test_filter_by_date_ignores_time_of_day():
    records = [
        _record(10, datetime(2024, 5, 31, 23, 59, 59), record_id='late'),
        _record(10, datetime(2024, 5, 1, 0, 0, 1), record_id='early'),
    ]
    assert [r.id for r in agg.filter_by_date(records, _may())] == ['late', 'early']


def test_filter_by_date_drops_unreadable_dates():
    records = [
        _record(10, 'not a date', record_id='bad'),
        _record(10, None, record_id='missing'),
        _record(10, '2024-05-10', record_id='good'),
    ]
    assert [r.id for r in agg.filter_by_date(records, _may())] == ['good']


def test_filter_by_date_empty_input():
    assert agg.filter_by_date([], _may()) == []


def test_period_total_and_breakdown_example():
    records = [
        _record(100, '2024-05-01', 'food'),
        _record(50, '2024-05-02', 'transport'),
    ]
    filtered = agg.filter_by_date(records, _may())
    totals = agg.compute_totals(filtered, 20, today=date(2024, 5, 20), now=datetime(2024, 5, 20, 12))
    assert totals.period_total == pytest.approx(170)

    breakdown = agg.compute_category_breakdown(filtered)
    assert [b.category for b in breakdown] == [Category.FOOD, Category.TRANSPORT]
    assert [b.amount for b in breakdown] == [pytest.approx(100), pytest.approx(50)]
    assert breakdown[0].percent_of_total == pytest.approx(66.7, abs=0.05)
    assert breakdown[1].percent_of_total == pytest.approx(33.3, abs=0.05)


def test_today_and_weekly_totals_exclude_fixed_expenses():
    records = [
        _record(10, '2024-05-10'),
        _record(20, '2024-05-04'),
        _record(40, '2024-05-03'),
    ]
    totals = agg.compute_totals(records, 500, today=date(2024, 5, 10), now=datetime(2024, 5, 10, 15, 0))
    assert totals.today_total == pytest.approx(10)
    # 2024-05-03 starts before the cutoff of 2024-05-03 15:00
    assert totals.weekly_total == pytest.approx(30)
    assert totals.period_total == pytest.approx(570)


def test_weekly_total_includes_day_starting_exactly_at_cutoff():
    records = [_record(40, '2024-05-03'), _record(5, '2024-05-02')]
    totals = agg.compute_totals(records, 0, today=date(2024, 5, 10), now=datetime(2024, 5, 10))
    assert totals.weekly_total == pytest.approx(40)


def test_unreadable_amounts_count_as_zero():
    records = [
        _record('abc', '2024-05-01'),
        _record(None, '2024-05-02'),
        _record(float('nan'), '2024-05-03'),
        _record('12.50', '2024-05-04'),
    ]
    totals = agg.compute_totals(records, 0, today=date(2024, 5, 4), now=datetime(2024, 5, 4, 9))
    assert totals.period_total == pytest.approx(12.5)
    assert totals.today_total == pytest.approx(12.5)
    breakdown = agg.compute_category_breakdown(records)
    assert sum(b.amount for b in breakdown) == pytest.approx(12.5)


def test_empty_list_yields_zero_totals_and_no_buckets():
    totals = agg.compute_totals([], 0, today=date(2024, 5, 4), now=datetime(2024, 5, 4, 9))
    assert totals == agg.Totals(0.0, 0.0, 0.0)
    assert agg.compute_category_breakdown([]) == []


def test_budget_status_unset_when_no_budget():
    for budget in (0, -10, None, 'abc'):
        status = agg.compute_budget_status(500, budget)
        assert not status.is_set
        assert status.remaining is None
        assert status.used_percent is None


def test_budget_status_within_and_over_budget():
    status = agg.compute_budget_status(250, 1000)
    assert status.is_set
    assert status.remaining == pytest.approx(750)
    assert status.used_percent == pytest.approx(25)

    over = agg.compute_budget_status(1500, 1000)
    assert over.remaining == 0
    assert over.used_percent == pytest.approx(150)


def test_breakdown_folds_unknown_and_legacy_categories():
    records = [
        _record(10, '2024-05-01', 'comida'),
        _record(5, '2024-05-01', 'food'),
        _record(7, '2024-05-01', 'gadgets'),
        _record(3, '2024-05-01', None),
        _record(1, '2024-05-01', 'OTROS'),
    ]
    breakdown = agg.compute_category_breakdown(records)
    by_category = {b.category: b.amount for b in breakdown}
    assert by_category == {Category.FOOD: pytest.approx(15), Category.OTHER: pytest.approx(11)}
    assert sum(b.percent_of_total for b in breakdown) == pytest.approx(100)


def test_breakdown_ties_keep_first_seen_order():
    records = [
        _record(10, '2024-05-01', 'health'),
        _record(30, '2024-05-01', 'leisure'),
        _record(10, '2024-05-01', 'services'),
        _record(10, '2024-05-01', 'transport'),
    ]
    breakdown = agg.compute_category_breakdown(records)
    assert [b.category for b in breakdown] == [
        Category.LEISURE, Category.HEALTH, Category.SERVICES, Category.TRANSPORT,
    ]


def test_breakdown_with_zero_total_has_zero_percentages():
    records = [_record(0, '2024-05-01', 'food'), _record('x', '2024-05-01', 'health')]
    breakdown = agg.compute_category_breakdown(records)
    assert [b.percent_of_total for b in breakdown] == [0.0, 0.0]


def test_engine_functions_are_idempotent():
    records = [_record(12.3, '2024-05-01', 'food'), _record(4.5, '2024-05-09', 'health')]
    args = (records, 10, date(2024, 5, 9), datetime(2024, 5, 9, 8))
    assert agg.compute_totals(*args) == agg.compute_totals(*args)
    assert agg.compute_category_breakdown(records) == agg.compute_category_breakdown(records)
    assert agg.filter_by_date(records, _may()) == agg.filter_by_date(records, _may())
    assert records[0].amount == 12.3


def test_search_expenses_matches_text_category_and_amount():
    records = [
        _record(12.5, '2024-05-01', 'food', 'Lunch at cafe', record_id='lunch'),
        _record(300, '2024-05-02', 'transporte', 'Train pass', record_id='train'),
        _record(45, '2024-05-03', 'health', 'Pharmacy', record_id='pharmacy'),
    ]
    assert [r.id for r in agg.search_expenses(records, 'LUNCH')] == ['lunch']
    assert [r.id for r in agg.search_expenses(records, 'transp')] == ['train']
    assert [r.id for r in agg.search_expenses(records, '12.5')] == ['lunch']
    assert [r.id for r in agg.search_expenses(records, '', 'transport')] == ['train']
    assert [r.id for r in agg.search_expenses(records, '', 'all')] == ['lunch', 'train', 'pharmacy']
    assert agg.search_expenses(records, 'pharmacy', 'food') == []


def test_list_total_adds_fixed_expenses():
    records = [_record(10, '2024-05-01'), _record('5.5', '2024-05-02')]
    assert agg.list_total(records, 100) == pytest.approx(115.5)
    assert agg.list_total([], 0) == 0
