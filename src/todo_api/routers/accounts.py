from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import get_credential_store, get_current_identity, get_token_service
from ..errors import Unauthenticated
from ..models import Account, Identity
from ..schemas import AccountCreate, AccountOut, RegistrationOut
from ..security import TokenService
from ..services import CredentialStore

router = APIRouter(
    prefix="/accounts",
    tags=["accounts"],
)


def _account_out(account: Account) -> AccountOut:
    return AccountOut(id=account.id, email=account.email, created_at=account.created_at)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=RegistrationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return it together with a bearer token.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Validation error"},
        409: {"description": "Email already registered"},
    },
)
def register(
    payload: AccountCreate,
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> RegistrationOut:
    """
    Register a new account; the response token can be used immediately.
    """
    account = credentials.register(payload.email, payload.password)
    issued = tokens.issue(account.id)
    return RegistrationOut(
        account=_account_out(account),
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_at=issued.expires_at,
    )


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=AccountOut,
    summary="Current account",
    description="Return the account the bearer token belongs to.",
    responses={401: {"description": "Missing, invalid or expired token"}},
)
def read_me(
    identity: Identity = Depends(get_current_identity),
    credentials: CredentialStore = Depends(get_credential_store),
) -> AccountOut:
    account = credentials.get(identity.account_id)
    if account is None:
        raise Unauthenticated()
    return _account_out(account)
