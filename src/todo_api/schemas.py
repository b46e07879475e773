from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128

# Body keys accepted for the due date; dueDate is what browser clients send
DUE_DATE_ALIASES = AliasChoices("due_date", "dueDate")

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Internal helper to normalize due_date input into a calendar date.
    - If value is a string, accept an ISO date, or an ISO datetime truncated to its date.
    - If value is a datetime, drop the time part.
    - If value is a date, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use an ISO8601 date (e.g., '2025-01-31')."
                ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value: Any) -> Any:
    value = _strip(value)
    return None if value == "" else value


# PUBLIC_INTERFACE
class AccountCreate(BaseModel):
    """
    Schema for registering a new account.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "a@example.com", "password": "secret123"}}
    )

    email: EmailStr = Field(..., description="Login email; stored lower-cased")
    password: str = Field(
        ...,
        description="Plaintext password; only its salted hash is stored",
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
    )

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        """
        Strip whitespace and refuse the "Name <address>" form, which login
        would not recognise.
        """
        v = _strip(v)
        if isinstance(v, str) and ("<" in v or ">" in v):
            raise ValueError("email must be a bare address")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


# PUBLIC_INTERFACE
class SessionCreate(BaseModel):
    """
    Schema for logging in. The email is not format-checked here so a malformed
    address fails the same way as an unknown one.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "a@example.com", "password": "secret123"}}
    )

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)


# PUBLIC_INTERFACE
class AccountOut(BaseModel):
    """Public account summary."""

    id: str = Field(..., description="Unique identifier of the account")
    email: str = Field(..., description="Login email")
    created_at: datetime = Field(..., description="Registration timestamp")


# PUBLIC_INTERFACE
class TokenOut(BaseModel):
    """
    Response schema when issuing bearer tokens.
    """

    access_token: str = Field(..., description="Signed JWT to send as 'Authorization: Bearer <token>'")
    token_type: str = Field(default="bearer")
    expires_at: datetime = Field(..., description="Instant after which the token is rejected")


# PUBLIC_INTERFACE
class RegistrationOut(TokenOut):
    """Registration response: the new account plus a token for it."""

    account: AccountOut


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": "high",
                "due_date": "2025-02-01",
            }
        }
    )

    title: str = Field(
        ..., description="Short title for the todo item", min_length=1, max_length=TITLE_MAX_LENGTH
    )
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )
    priority: Priority = Field(default=Priority.medium, description="low, medium or high")
    due_date: Optional[date] = Field(
        default=None,
        validation_alias=DUE_DATE_ALIASES,
        description="Due date of the todo item. Accepts an ISO8601 date; datetimes are truncated",
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        """
        Strip whitespace so the length bounds apply to the trimmed title.
        """
        return _strip(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Priority:
        """
        Anything other than a known priority level falls back to medium.
        """
        if isinstance(v, Priority):
            return v
        if isinstance(v, str):
            try:
                return Priority(v.strip().lower())
            except ValueError:
                pass
        return Priority.medium

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    Sending null clears description and due_date; title, priority and
    completed cannot be null.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "completed": True,
                "due_date": "2025-02-02",
            }
        }
    )

    title: Optional[str] = Field(
        default=None, description="Short title for the todo item", min_length=1, max_length=TITLE_MAX_LENGTH
    )
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )
    priority: Optional[Priority] = Field(default=None, description="low, medium or high")
    due_date: Optional[date] = Field(
        default=None, validation_alias=DUE_DATE_ALIASES, description="Due date of the todo item"
    )
    completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("priority", mode="before")
    @classmethod
    def lower_priority(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)

    @field_validator("title", "priority", "completed")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # Only runs for values the client actually sent
        if v is None:
            raise ValueError("field cannot be null")
        return v


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f2b9c1e8d7a4f6b9e0c1d2a3b4c5d6e",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": "medium",
                "due_date": "2025-02-01",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456Z",
                "updated_at": "2025-01-26T09:00:00.000001Z",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(..., description="low, medium or high")
    due_date: Optional[date] = Field(default=None, description="Due date as an ISO8601 date")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class PaginationInfo(BaseModel):
    current_page: int = Field(..., description="Requested page (1-based)")
    page_size: int = Field(..., description="Maximum items per page")
    total_pages: int = Field(..., description="ceil(total_todos / page_size)")
    total_todos: int = Field(..., description="Number of todos matching the query")
    has_next_page: bool
    has_prev_page: bool


# PUBLIC_INTERFACE
class TodoPage(BaseModel):
    """
    Envelope for paginated list responses.
    """

    items: List[TodoOut] = Field(..., description="Todos on the requested page, newest first")
    pagination: PaginationInfo


class MessageOut(BaseModel):
    message: str
