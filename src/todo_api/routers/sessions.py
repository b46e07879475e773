from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import get_credential_store, get_token_service
from ..logging_config import get_logger
from ..schemas import SessionCreate, TokenOut
from ..security import TokenService
from ..services import CredentialStore

logger = get_logger(__name__)

router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TokenOut,
    summary="Log in",
    description=(
        "Exchange email and password for a bearer token. Tokens are stateless: "
        "logging out means discarding the token client-side."
    ),
    responses={
        200: {"description": "Token issued"},
        401: {"description": "Invalid email or password"},
    },
)
def login(
    payload: SessionCreate,
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> TokenOut:
    account = credentials.verify(payload.email, payload.password)
    issued = tokens.issue(account.id)
    logger.info("Issued token for account %s", account.id)
    return TokenOut(
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_at=issued.expires_at,
    )
