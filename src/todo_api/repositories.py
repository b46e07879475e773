from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import count
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import DuplicateEmail
from .logging_config import get_logger
from .models import AccountEntity, TodoEntity
from .schemas import TodoCreate
from .settings import Settings

logger = get_logger(__name__)

# Fields a partial update may touch; id, owner_id and created_at never change.
MUTABLE_TODO_FIELDS = ("title", "description", "priority", "due_date", "completed")


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing one owner's todos.
    """
    limit: int = 10
    offset: int = 0
    search: Optional[str] = None


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class AccountRepository(ABC):
    """Abstract repository contract for account storage backends."""

    @abstractmethod
    def add(self, email: str, password_hash: str) -> AccountEntity:
        """Persist a new account. Raise DuplicateEmail if the email is taken."""

    @abstractmethod
    def get(self, account_id: str) -> Optional[AccountEntity]:
        """Return an AccountEntity by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[AccountEntity]:
        """Return an AccountEntity by normalized email, or None if not found."""


# PUBLIC_INTERFACE
class TodoRepository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Every method takes the owner's account id and only ever sees that owner's
    rows; a todo owned by someone else behaves exactly like a missing one.
    """

    @abstractmethod
    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        """Create and return a new TodoEntity owned by owner_id."""

    @abstractmethod
    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        """Return the owner's TodoEntity by id, or None."""

    @abstractmethod
    def update(self, owner_id: str, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        """Apply `changes` (a subset of MUTABLE_TODO_FIELDS). Return updated entity or None."""

    @abstractmethod
    def delete(self, owner_id: str, todo_id: str) -> bool:
        """Delete the owner's TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        """
        Return a slice of the owner's TodoEntities and the total count matching filters.
        - Supports limit/offset
        - Substring search across title and description (case-insensitive)
        - Newest first by created_at, later insertions first on ties
        """


class InMemoryAccountRepository(AccountRepository):
    """
    Thread-safe in-memory account storage.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, AccountEntity] = {}
        self._by_email: Dict[str, str] = {}

    def add(self, email: str, password_hash: str) -> AccountEntity:
        entity: AccountEntity = {
            "id": new_id(),
            "email": email,
            "password_hash": password_hash,
            "created_at": utcnow(),
        }
        with self._lock:
            if email in self._by_email:
                raise DuplicateEmail()
            self._items[entity["id"]] = entity
            self._by_email[email] = entity["id"]
        return entity.copy()

    def get(self, account_id: str) -> Optional[AccountEntity]:
        with self._lock:
            item = self._items.get(account_id)
            return None if item is None else item.copy()

    def get_by_email(self, email: str) -> Optional[AccountEntity]:
        with self._lock:
            account_id = self._by_email.get(email)
            return None if account_id is None else self._items[account_id].copy()


class InMemoryTodoRepository(TodoRepository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}
        self._seq: Dict[str, int] = {}
        self._counter = count()

    def _owned(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        item = self._items.get(todo_id)
        if item is None or item["owner_id"] != owner_id:
            return None
        return item

    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        now = utcnow()
        entity: TodoEntity = {
            "id": new_id(),
            "owner_id": owner_id,
            "title": data.title,
            "description": data.description,
            "priority": data.priority.value,
            "due_date": data.due_date,
            "completed": False,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
            self._seq[entity["id"]] = next(self._counter)
        return entity.copy()

    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._owned(owner_id, todo_id)
            return None if item is None else item.copy()

    def update(self, owner_id: str, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._owned(owner_id, todo_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            for key in MUTABLE_TODO_FIELDS:
                if key in changes:
                    updated[key] = changes[key]  # type: ignore[literal-required]
            updated["updated_at"] = utcnow()

            self._items[todo_id] = updated
            return updated.copy()

    def delete(self, owner_id: str, todo_id: str) -> bool:
        with self._lock:
            if self._owned(owner_id, todo_id) is None:
                return False
            del self._items[todo_id]
            self._seq.pop(todo_id, None)
            return True

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = [t for t in self._items.values() if t["owner_id"] == owner_id]

            if q.search:
                s = q.search.lower()

                def matches(t: TodoEntity) -> bool:
                    title_ok = s in t["title"].lower()
                    desc_ok = s in t["description"].lower() if t["description"] else False
                    return title_ok or desc_ok

                items = [t for t in items if matches(t)]

            total = len(items)
            items_sorted = sorted(
                items, key=lambda t: (t["created_at"], self._seq[t["id"]]), reverse=True
            )

            # Pagination
            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            page = items_sorted[start:end]

            # Return copies to avoid external mutation
            return [t.copy() for t in page], total


# PUBLIC_INTERFACE
def get_repositories(settings: Settings) -> Tuple[AccountRepository, TodoRepository]:
    """
    Build the account and todo repositories for the configured backend.
    - memory: InMemoryAccountRepository / InMemoryTodoRepository
    - sqlite: SQLiteAccountRepository / SQLiteTodoRepository sharing one db file
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteAccountRepository, SQLiteTodoRepository

        logger.info("Using sqlite persistence at %s", settings.sqlite_db_path)
        return (
            SQLiteAccountRepository(settings.sqlite_db_path),
            SQLiteTodoRepository(settings.sqlite_db_path),
        )
    logger.info("Using in-memory persistence")
    return InMemoryAccountRepository(), InMemoryTodoRepository()
