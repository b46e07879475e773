from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import TokenError, TokenExpired, Unauthenticated
from .logging_config import get_logger
from .models import Identity
from .security import TokenService
from .services import CredentialStore, TodoStore

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def get_token_service(request: Request) -> TokenService:
    """Token service built by create_app for this application instance."""
    return request.app.state.token_service


# PUBLIC_INTERFACE
def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


# PUBLIC_INTERFACE
def get_todo_store(request: Request) -> TodoStore:
    return request.app.state.todo_store


# PUBLIC_INTERFACE
def authenticate(
    creds: Optional[HTTPAuthorizationCredentials],
    tokens: TokenService,
    credentials: CredentialStore,
) -> Identity:
    """
    Resolve bearer credentials to an Identity.

    Missing header, a malformed/forged/expired token and a token for an account
    that no longer exists all raise the same Unauthenticated error.
    """
    if creds is None or not creds.credentials:
        raise Unauthenticated()

    try:
        account_id = tokens.verify(creds.credentials)
    except TokenError as exc:
        reason = "expired" if isinstance(exc, TokenExpired) else "invalid"
        logger.debug("Rejected %s bearer token", reason)
        raise Unauthenticated() from exc

    if credentials.get(account_id) is None:
        logger.info("Rejected token for unknown account %s", account_id)
        raise Unauthenticated()
    return Identity(account_id=account_id)


# PUBLIC_INTERFACE
def get_current_identity(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
    credentials: CredentialStore = Depends(get_credential_store),
) -> Identity:
    """
    FastAPI dependency enforcing 'Authorization: Bearer <token>'.

    Usage:
        @router.get("/")
        def endpoint(identity: Identity = Depends(get_current_identity)): ...

    Raises:
        Unauthenticated (401, WWW-Authenticate: Bearer) when the token is
        missing, invalid, expired, or names a missing account.
    """
    return authenticate(creds, tokens, credentials)
