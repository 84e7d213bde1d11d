from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import pandas as pd

try:
    from .config import DB_PATH, ensure_data_directories
except ImportError:
    from config import DB_PATH, ensure_data_directories

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    amount REAL,
    expense_date TEXT,
    description TEXT,
    category TEXT,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_expense_user_date ON expenses (user_id, expense_date);
CREATE INDEX IF NOT EXISTS ix_expense_category ON expenses (category);
"""

# Record field -> column
COLUMN_MAP = {
    'amount': 'amount',
    'date': 'expense_date',
    'description': 'description',
    'category': 'category',
}

SELECT_SQL = (
    "SELECT id, amount AS 'Amount', expense_date AS 'Date', description AS 'Description', "
    "category AS 'Category', created_at AS 'Created At' FROM expenses"
)


def _resolve(db_path: Optional[Path]) -> Path:
    if db_path is not None:
        return Path(db_path)
    ensure_data_directories()
    return DB_PATH


@contextmanager
def connect(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    path = _resolve(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Optional[Path] = None) -> None:
    with connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    logger.debug("Expense schema ready at %s", _resolve(db_path))


def _columns_for(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = sorted(name for name in fields if name not in COLUMN_MAP)
    if unknown:
        raise KeyError(f"Unknown expense field(s): {', '.join(unknown)}")
    return {COLUMN_MAP[name]: value for name, value in fields.items()}


def insert_expense(user_id: str, fields: Mapping[str, Any], db_path: Optional[Path] = None) -> str:
    """Insert a new expense row and return its generated id."""
    expense_id = uuid.uuid4().hex
    columns = _columns_for(fields)
    columns.update({
        'id': expense_id,
        'user_id': str(user_id),
        'created_at': datetime.now().isoformat(),
    })
    names = list(columns)
    sql = f"INSERT INTO expenses ({', '.join(names)}) VALUES ({', '.join('?' for _ in names)})"
    with connect(db_path) as conn:
        conn.execute(sql, [columns[name] for name in names])
        conn.commit()
    return expense_id


def update_expense(user_id: str, expense_id: str, fields: Mapping[str, Any], db_path: Optional[Path] = None) -> bool:
    """Overwrite the given fields of one expense.

    Returns True if a row belonging to ``user_id`` was updated.
    """
    columns = _columns_for(fields)
    if not columns:
        return False
    assignments = ', '.join(f"{name} = ?" for name in columns)
    params: List[Any] = list(columns.values()) + [expense_id, str(user_id)]
    with connect(db_path) as conn:
        cursor = conn.execute(f"UPDATE expenses SET {assignments} WHERE id = ? AND user_id = ?", params)
        conn.commit()
        return cursor.rowcount > 0


def delete_expense(user_id: str, expense_id: str, db_path: Optional[Path] = None) -> bool:
    with connect(db_path) as conn:
        cursor = conn.execute("DELETE FROM expenses WHERE id = ? AND user_id = ?", (expense_id, str(user_id)))
        conn.commit()
        return cursor.rowcount > 0


def fetch_expenses(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db_path: Optional[Path] = None,
) -> pd.DataFrame:
    """Fetch a user's expenses, newest first."""
    where = ["user_id = ?"]
    params: List[Any] = [str(user_id)]
    if start_date:
        where.append("expense_date >= ?")
        params.append(start_date)
    if end_date:
        where.append("expense_date <= ?")
        params.append(end_date)

    sql = SELECT_SQL + " WHERE " + " AND ".join(where) + " ORDER BY expense_date DESC, created_at DESC"
    with connect(db_path) as conn:
        df = pd.read_sql_query(sql, conn, params=params)
    return df
