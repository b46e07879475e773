from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


# PUBLIC_INTERFACE
class TodoAppError(Exception):
    """
    Base class for errors surfaced to API clients.

    Each subclass fixes the HTTP status and the machine-readable error name used
    in the JSON error body: {"error": name, "message": message, "detail": detail}.
    """

    status_code: int = 500
    error: str = "ServerError"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[List[Dict[str, Any]]] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, "detail": self.detail}


class InvalidInput(TodoAppError):
    status_code = 400
    error = "ValidationError"
    default_message = "Request validation failed"


class DuplicateEmail(TodoAppError):
    status_code = 409
    error = "DuplicateEmail"
    default_message = "An account with this email already exists"


class InvalidCredentials(TodoAppError):
    status_code = 401
    error = "InvalidCredentials"
    default_message = "Invalid email or password"


class Unauthenticated(TodoAppError):
    status_code = 401
    error = "Unauthenticated"
    default_message = "Not authenticated"


class NotFound(TodoAppError):
    status_code = 404
    error = "NotFound"
    default_message = "Todo not found"


class StoreUnavailable(TodoAppError):
    """Persistence-layer failure; the message never reaches the client."""

    status_code = 500
    error = "ServerError"
    default_message = "Storage backend unavailable"


class TokenError(Exception):
    """Raised by the token service; never rendered directly."""


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


def clean_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Strip the non-JSON parts (ctx exception objects, raw input, docs url) from pydantic errors."""
    cleaned = []
    for err in errors:
        item = {k: v for k, v in err.items() if k not in {"ctx", "url", "input"}}
        cleaned.append(item)
    return cleaned


# PUBLIC_INTERFACE
def validate_or_raise(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate `data` against a pydantic model, raising InvalidInput with
    field-level detail instead of pydantic's ValidationError.
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(detail=clean_errors(exc.errors())) from exc
