"""
Credential and todo stores.

CredentialStore owns everything that touches password hashes. TodoStore scopes
every read and write to the calling Identity; a todo belonging to another
account is reported exactly like a missing one.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import DuplicateEmail, InvalidCredentials, InvalidInput, NotFound, validate_or_raise
from .logging_config import get_logger
from .models import Account, Identity, TodoEntity
from .repositories import AccountRepository, ListQuery, TodoRepository
from .schemas import AccountCreate, TodoCreate, TodoUpdate
from .security import hash_password, verify_password
from .utils import page_offset, pagination_info

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_email(email: str) -> str:
    return email.strip().lower()


# PUBLIC_INTERFACE
class CredentialStore:
    """Registers accounts and checks passwords against their stored hashes."""

    def __init__(self, accounts: AccountRepository) -> None:
        self._accounts = accounts

    def register(self, email: str, password: str) -> Account:
        """
        Create an account.

        Raises:
            InvalidInput: malformed email or password outside the length bounds.
            DuplicateEmail: the normalized email is already registered.
        """
        data = validate_or_raise(AccountCreate, {"email": email, "password": password})
        normalized = normalize_email(data.email)
        if self._accounts.get_by_email(normalized) is not None:
            raise DuplicateEmail()
        # The repository re-checks uniqueness atomically
        entity = self._accounts.add(normalized, hash_password(data.password))
        logger.info("Registered account %s", entity["id"])
        return Account.from_entity(entity)

    def verify(self, email: str, password: str) -> Account:
        """
        Return the account for a correct email/password pair.

        Raises:
            InvalidCredentials: unknown email or wrong password, indistinguishably.
        """
        entity = None
        if isinstance(email, str) and email.strip():
            entity = self._accounts.get_by_email(normalize_email(email))
        # Unknown emails still pay for one hash check
        stored_hash = entity["password_hash"] if entity else None
        password_ok = verify_password(password or "", stored_hash)
        if entity is None or not password_ok:
            logger.info("Rejected login attempt")
            raise InvalidCredentials()
        return Account.from_entity(entity)

    def get(self, account_id: str) -> Optional[Account]:
        entity = self._accounts.get(account_id)
        return None if entity is None else Account.from_entity(entity)


# PUBLIC_INTERFACE
class TodoStore:
    """
    Owner-scoped todo operations. `identity` is required on every call and
    its account id is the only owner any operation can see.
    """

    def __init__(self, todos: TodoRepository) -> None:
        self._todos = todos

    def list(
        self,
        identity: Identity,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
    ) -> Tuple[List[TodoEntity], Dict[str, Any]]:
        """
        Return one page of the caller's todos, newest first, and its pagination block.

        Raises:
            InvalidInput: page < 1 or page_size outside 1..MAX_PAGE_SIZE.
        """
        errors = []
        if page < 1:
            errors.append({"loc": ["query", "page"], "msg": "page must be >= 1", "type": "greater_than_equal"})
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            errors.append(
                {
                    "loc": ["query", "limit"],
                    "msg": f"limit must be between 1 and {MAX_PAGE_SIZE}",
                    "type": "range",
                }
            )
        if errors:
            raise InvalidInput(detail=errors)

        needle = search.strip() if search else None
        query = ListQuery(limit=page_size, offset=page_offset(page, page_size), search=needle or None)
        items, total = self._todos.list(identity.account_id, query)
        return items, pagination_info(page, page_size, total)

    def get(self, identity: Identity, todo_id: str) -> TodoEntity:
        item = self._todos.get(identity.account_id, todo_id)
        if item is None:
            raise NotFound()
        return item

    def create(self, identity: Identity, fields: Union[TodoCreate, Mapping[str, Any]]) -> TodoEntity:
        """
        Create a todo owned by the caller.

        Raises:
            InvalidInput: missing/blank title or a field outside its bounds.
        """
        data = validate_or_raise(TodoCreate, fields)
        created = self._todos.create(identity.account_id, data)
        logger.debug("Account %s created todo %s", identity.account_id, created["id"])
        return created

    def update(
        self,
        identity: Identity,
        todo_id: str,
        partial_fields: Union[TodoUpdate, Mapping[str, Any]],
    ) -> TodoEntity:
        """
        Change only the supplied fields of one of the caller's todos.

        Raises:
            InvalidInput: a supplied field fails validation.
            NotFound: no such todo for this owner.
        """
        data = validate_or_raise(TodoUpdate, partial_fields)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("priority") is not None:
            changes["priority"] = data.priority.value  # type: ignore[union-attr]
        updated = self._todos.update(identity.account_id, todo_id, changes)
        if updated is None:
            raise NotFound()
        return updated

    def delete(self, identity: Identity, todo_id: str) -> None:
        if not self._todos.delete(identity.account_id, todo_id):
            raise NotFound()
        logger.debug("Account %s deleted todo %s", identity.account_id, todo_id)
