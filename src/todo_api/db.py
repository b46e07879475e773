from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generator, List, Mapping, Optional, Tuple

from .errors import DuplicateEmail, StoreUnavailable
from .logging_config import get_logger
from .models import AccountEntity, TodoEntity
from .repositories import (
    MUTABLE_TODO_FIELDS,
    AccountRepository,
    ListQuery,
    TodoRepository,
    new_id,
    utcnow,
)
from .schemas import TodoCreate

logger = get_logger(__name__)


@dataclass(frozen=True)
class _AccountCols:
    table: str = "accounts"
    id: str = "id"
    email: str = "email"
    password_hash: str = "password_hash"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _TodoCols:
    table: str = "todos"
    id: str = "id"
    owner_id: str = "owner_id"
    title: str = "title"
    description: str = "description"
    priority: str = "priority"
    due_date: str = "due_date"
    completed: str = "completed"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_A = _AccountCols()
_T = _TodoCols()


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _parse_date(s: Optional[str]) -> Optional[date]:
    return None if s is None else date.fromisoformat(s)


def _lower(value: Optional[str]) -> Optional[str]:
    return None if value is None else value.lower()


class _SQLiteStore:
    """
    Connection handling and schema bootstrap shared by the SQLite repositories.
    Any sqlite3 error escaping an operation is logged and re-raised as
    StoreUnavailable.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            logger.error("Could not open sqlite database %s: %s", self._db_path, exc)
            raise StoreUnavailable() from exc
        conn.row_factory = sqlite3.Row
        # Python's str.lower handles non-ASCII text, unlike sqlite's lower()
        conn.create_function("py_lower", 1, _lower, deterministic=True)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("sqlite operation failed on %s: %s", self._db_path, exc)
            raise StoreUnavailable() from exc
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_A.table} (
                    {_A.id} TEXT PRIMARY KEY,
                    {_A.email} TEXT NOT NULL UNIQUE,
                    {_A.password_hash} TEXT NOT NULL,
                    {_A.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} TEXT PRIMARY KEY,
                    {_T.owner_id} TEXT NOT NULL REFERENCES {_A.table}({_A.id}),
                    {_T.title} TEXT NOT NULL,
                    {_T.description} TEXT NULL,
                    {_T.priority} TEXT NOT NULL DEFAULT 'medium',
                    {_T.due_date} TEXT NULL,
                    {_T.completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_owner_created "
                f"ON {_T.table}({_T.owner_id}, {_T.created_at})"
            )


class SQLiteAccountRepository(_SQLiteStore, AccountRepository):
    """
    Account storage backed by sqlite; the UNIQUE constraint on email settles
    concurrent registrations.
    """

    def _row_to_entity(self, row: sqlite3.Row) -> AccountEntity:
        return {
            "id": row[_A.id],
            "email": row[_A.email],
            "password_hash": row[_A.password_hash],
            "created_at": _parse_dt(row[_A.created_at]),
        }

    def add(self, email: str, password_hash: str) -> AccountEntity:
        entity: AccountEntity = {
            "id": new_id(),
            "email": email,
            "password_hash": password_hash,
            "created_at": utcnow(),
        }
        with self._conn() as conn:
            try:
                conn.execute(
                    f"""
                    INSERT INTO {_A.table} ({_A.id}, {_A.email}, {_A.password_hash}, {_A.created_at})
                    VALUES (?, ?, ?, ?)
                    """,
                    (entity["id"], email, password_hash, _ts(entity["created_at"])),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateEmail() from exc
        return entity

    def get(self, account_id: str) -> Optional[AccountEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_A.table} WHERE {_A.id} = ?", (account_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[AccountEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_A.table} WHERE {_A.email} = ?", (email,)).fetchone()
            return self._row_to_entity(row) if row else None


class SQLiteTodoRepository(_SQLiteStore, TodoRepository):
    """
    Lightweight SQLite repository implementing the TodoRepository interface.
    Every statement carries `owner_id = ?` in its WHERE clause.
    """

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": row[_T.id],
            "owner_id": row[_T.owner_id],
            "title": str(row[_T.title]),
            "description": row[_T.description],
            "priority": row[_T.priority],
            "due_date": _parse_date(row[_T.due_date]),
            "completed": bool(row[_T.completed]),
            "created_at": _parse_dt(row[_T.created_at]),
            "updated_at": _parse_dt(row[_T.updated_at]),
        }

    def _select_owned(self, conn: sqlite3.Connection, owner_id: str, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_T.table} WHERE {_T.id} = ? AND {_T.owner_id} = ?",
            (todo_id, owner_id),
        ).fetchone()

    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        now = _ts(utcnow())
        todo_id = new_id()
        due = data.due_date.isoformat() if data.due_date else None
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.owner_id}, {_T.title}, {_T.description},
                    {_T.priority}, {_T.due_date}, {_T.completed}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (todo_id, owner_id, data.title, data.description, data.priority.value, due, now, now),
            )
            row = self._select_owned(conn, owner_id, todo_id)
            if row is None:
                logger.error("Todo %s vanished right after being written", todo_id)
                raise StoreUnavailable()
            return self._row_to_entity(row)

    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select_owned(conn, owner_id, todo_id)
            return self._row_to_entity(row) if row else None

    def update(self, owner_id: str, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        assignments = []
        params: List[Any] = []
        for key in MUTABLE_TODO_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "due_date" and value is not None:
                value = value.isoformat()
            elif key == "completed":
                value = 1 if value else 0
            assignments.append(f"{key} = ?")
            params.append(value)
        assignments.append(f"{_T.updated_at} = ?")
        params.append(_ts(utcnow()))

        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {', '.join(assignments)}
                WHERE {_T.id} = ? AND {_T.owner_id} = ?
                """,
                [*params, todo_id, owner_id],
            )
            if cur.rowcount == 0:
                return None
            row = self._select_owned(conn, owner_id, todo_id)
            if row is None:
                logger.error("Todo %s vanished right after being written", todo_id)
                raise StoreUnavailable()
            return self._row_to_entity(row)

    def delete(self, owner_id: str, todo_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_T.table} WHERE {_T.id} = ? AND {_T.owner_id} = ?",
                (todo_id, owner_id),
            )
            return cur.rowcount > 0

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        clauses = [f"{_T.owner_id} = ?"]
        params: List[Any] = [owner_id]

        if q.search:
            # Plain substring match; instr() needs no LIKE wildcard escaping
            clauses.append(
                f"(instr(py_lower({_T.title}), ?) > 0 OR instr(py_lower({_T.description}), ?) > 0)"
            )
            needle = q.search.lower()
            params.extend([needle, needle])

        where_sql = f"WHERE {' AND '.join(clauses)}"
        order_sql = f"ORDER BY {_T.created_at} DESC, rowid DESC"

        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) as cnt FROM {_T.table} {where_sql}", params
            ).fetchone()
            total = int(count_row["cnt"]) if count_row else 0
            if q.offset >= total:
                # Nothing to fetch; also keeps huge offsets out of sqlite integer binds
                return [], total

            rows = conn.execute(
                f"""
                SELECT * FROM {_T.table}
                {where_sql}
                {order_sql}
                LIMIT ? OFFSET ?
                """,
                [*params, max(q.limit, 0), max(q.offset, 0)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows], total
