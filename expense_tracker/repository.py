"""SQLite-backed expense repository with snapshot subscriptions.

Each user's expenses live in the ``expenses`` table. Subscribers receive
the full, current list of a user's records right away and again after
every create, update or delete for that user; they never receive deltas.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

try:
    from . import db
    from .models import ExpenseRecord, validate_expense_fields
except ImportError:
    import db
    from models import ExpenseRecord, validate_expense_fields

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[List[ExpenseRecord]], None]


def frame_to_records(df: pd.DataFrame) -> List[ExpenseRecord]:
    """Convert rows returned by :func:`db.fetch_expenses` into records."""
    records: List[ExpenseRecord] = []
    for row in df.to_dict('records'):
        created = pd.to_datetime(row.get('Created At'), errors='coerce')
        records.append(ExpenseRecord(
            id=row.get('id'),
            amount=row.get('Amount'),
            date=row.get('Date'),
            description=row.get('Description') or '',
            category=row.get('Category'),
            created_at=None if pd.isna(created) else created.to_pydatetime(),
        ))
    return records


def _require_user(user_id: Optional[str]) -> str:
    if user_id is None or not str(user_id).strip():
        raise ValueError("User is not authenticated")
    return str(user_id)


class SqliteExpenseRepository:
    """Create/update/delete/list operations over one SQLite file."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path
        self._listeners: Dict[str, List[SnapshotListener]] = defaultdict(list)
        db.init_db(db_path)

    def list(self, user_id: str) -> List[ExpenseRecord]:
        user_id = _require_user(user_id)
        return frame_to_records(db.fetch_expenses(user_id, db_path=self.db_path))

    def get(self, user_id: str, expense_id: str) -> Optional[ExpenseRecord]:
        return next((record for record in self.list(user_id) if record.id == expense_id), None)

    def create(self, user_id: str, fields: Mapping[str, Any]) -> str:
        """Validate and store a new expense, returning its id.

        Raises:
            ExpenseValidationError: If the submitted fields are invalid
        """
        user_id = _require_user(user_id)
        validated = validate_expense_fields(
            fields.get('amount'),
            fields.get('date'),
            fields.get('description'),
            fields.get('category'),
        )
        expense_id = db.insert_expense(user_id, validated.to_row(), db_path=self.db_path)
        logger.info("Created expense %s for user %s", expense_id, user_id)
        self._notify(user_id)
        return expense_id

    def update(self, user_id: str, expense_id: str, fields: Mapping[str, Any]) -> bool:
        """Overwrite an expense with the given fields merged over its current values.

        Returns False when the expense does not exist for this user.
        """
        user_id = _require_user(user_id)
        current = self.get(user_id, expense_id)
        if current is None:
            return False
        merged = {
            'amount': current.amount,
            'date': current.date,
            'description': current.description,
            'category': current.category,
        }
        merged.update(fields)
        validated = validate_expense_fields(
            merged['amount'], merged['date'], merged['description'], merged['category'],
        )
        updated = db.update_expense(user_id, expense_id, validated.to_row(), db_path=self.db_path)
        if updated:
            logger.info("Updated expense %s for user %s", expense_id, user_id)
            self._notify(user_id)
        return updated

    def delete(self, user_id: str, expense_id: str) -> bool:
        user_id = _require_user(user_id)
        deleted = db.delete_expense(user_id, expense_id, db_path=self.db_path)
        if deleted:
            logger.info("Deleted expense %s for user %s", expense_id, user_id)
            self._notify(user_id)
        return deleted

    def subscribe(self, user_id: str, listener: SnapshotListener) -> Callable[[], None]:
        """Deliver the current snapshot now and after every change.

        Returns a function that cancels the subscription.
        """
        user_id = _require_user(user_id)
        self._listeners[user_id].append(listener)
        logger.info("Subscribed to expenses of user %s", user_id)
        listener(self.list(user_id))

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)
                logger.info("Cancelled expense subscription of user %s", user_id)

        return unsubscribe

    def _notify(self, user_id: str) -> None:
        listeners = list(self._listeners.get(user_id, []))
        if not listeners:
            return
        snapshot = self.list(user_id)
        for listener in listeners:
            listener(list(snapshot))
