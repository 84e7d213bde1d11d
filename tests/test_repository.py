from datetime import date

import pytest

from expense_tracker.models import ExpenseValidationError
from expense_tracker.repository import SqliteExpenseRepository


def _repo(tmp_path):
    return SqliteExpenseRepository(tmp_path / 'expenses.db')


def _expense(**overrides):
    fields = {'amount': '120.50', 'date': date(2024, 5, 3), 'description': 'Groceries', 'category': 'food'}
    fields.update(overrides)
    return fields


def test_create_and_list(tmp_path):
    repo = _repo(tmp_path)
    expense_id = repo.create('alice', _expense())

    records = repo.list('alice')
    assert len(records) == 1
    record = records[0]
    assert record.id == expense_id
    assert record.amount == pytest.approx(120.5)
    assert record.date_value == date(2024, 5, 3)
    assert record.description == 'Groceries'
    assert record.category == 'food'
    assert record.created_at is not None


def test_list_is_newest_first(tmp_path):
    repo = _repo(tmp_path)
    repo.create('alice', _expense(date='2024-05-01', description='Old'))
    repo.create('alice', _expense(date='2024-05-09', description='New'))
    assert [r.description for r in repo.list('alice')] == ['New', 'Old']


def test_create_rejects_invalid_expense(tmp_path):
    repo = _repo(tmp_path)
    with pytest.raises(ExpenseValidationError):
        repo.create('alice', _expense(amount=0))
    assert repo.list('alice') == []


def test_operations_require_a_user(tmp_path):
    repo = _repo(tmp_path)
    with pytest.raises(ValueError):
        repo.create(None, _expense())
    with pytest.raises(ValueError):
        repo.list('  ')


def test_update_overwrites_given_fields(tmp_path):
    repo = _repo(tmp_path)
    expense_id = repo.create('alice', _expense())
    assert repo.update('alice', expense_id, {'amount': 99, 'category': 'health'})

    record = repo.get('alice', expense_id)
    assert record.amount == pytest.approx(99)
    assert record.category == 'health'
    assert record.description == 'Groceries'


def test_update_validates_merged_values(tmp_path):
    repo = _repo(tmp_path)
    expense_id = repo.create('alice', _expense())
    with pytest.raises(ExpenseValidationError):
        repo.update('alice', expense_id, {'description': ''})


def test_update_and_delete_missing_expense(tmp_path):
    repo = _repo(tmp_path)
    assert repo.update('alice', 'missing', {'amount': 5}) is False
    assert repo.delete('alice', 'missing') is False


def test_delete_removes_expense(tmp_path):
    repo = _repo(tmp_path)
    expense_id = repo.create('alice', _expense())
    assert repo.delete('alice', expense_id)
    assert repo.list('alice') == []


def test_users_are_isolated(tmp_path):
    repo = _repo(tmp_path)
    expense_id = repo.create('alice', _expense())
    repo.create('bob', _expense(description='Bob lunch'))

    assert [r.description for r in repo.list('bob')] == ['Bob lunch']
    assert repo.delete('bob', expense_id) is False
    assert repo.update('bob', expense_id, {'amount': 1}) is False
    assert len(repo.list('alice')) == 1


def test_subscription_delivers_full_snapshots(tmp_path):
    repo = _repo(tmp_path)
    repo.create('alice', _expense(description='Existing'))
    snapshots = []
    unsubscribe = repo.subscribe('alice', snapshots.append)

    assert [len(s) for s in snapshots] == [1]

    expense_id = repo.create('alice', _expense(description='Second'))
    repo.update('alice', expense_id, {'amount': 10})
    repo.delete('alice', expense_id)
    assert [len(s) for s in snapshots] == [1, 2, 2, 1]

    repo.create('bob', _expense())
    assert len(snapshots) == 4

    unsubscribe()
    repo.create('alice', _expense(description='Unseen'))
    assert len(snapshots) == 4
