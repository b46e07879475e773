from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class AccountEntity(TypedDict):
    """
    A stored account record.

    Fields:
    - id: Opaque unique identifier (uuid4 hex)
    - email: Trimmed, lower-cased login address; unique
    - password_hash: Salted one-way hash; never leaves the credential store
    - created_at: UTC creation timestamp
    """

    id: str
    email: str
    password_hash: str
    created_at: datetime


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item for non-ORM storage
    backends.

    Fields:
    - id: Opaque unique identifier (uuid4 hex)
    - owner_id: Id of the account that created the item
    - title: Short title (1..100 chars, trimmed on input via schemas)
    - description: Optional detailed description (..500 chars)
    - priority: 'low', 'medium' or 'high'
    - due_date: Optional calendar date
    - completed: Boolean completion flag
    - created_at: UTC creation timestamp
    - updated_at: UTC last update timestamp
    """

    id: str
    owner_id: str
    title: str
    description: Optional[str]
    priority: str
    due_date: Optional[date]
    completed: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Account:
    """Public view of an account: everything except the password hash."""

    id: str
    email: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: AccountEntity) -> "Account":
        return cls(id=entity["id"], email=entity["email"], created_at=entity["created_at"])


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as resolved by the access guard."""

    account_id: str
