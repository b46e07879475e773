"""
Password hashing and bearer-token handling.

- Passwords are hashed with passlib (PBKDF2-SHA256, salted, slow); raw
  passwords are never stored or compared.
- Access tokens are HS256 JWTs carrying sub (account id), iat and exp.
  Authentication is stateless: there is no revocation list, so logout only
  means discarding the token client-side.

This module does NOT:
- Look up accounts (see services.CredentialStore)
- Read the Authorization header (see auth.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .errors import TokenExpired, TokenInvalid

ALGORITHM = "HS256"

# -----------------------------------------------------------------------------
# Password Hashing
# -----------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Verified against when the email is unknown, so both login failures cost the same
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


def hash_password(raw_password: str) -> str:
    """
    Hash a plaintext password with a per-call random salt.
    """
    return pwd_context.hash(raw_password)


def verify_password(raw_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify that a raw password matches its hashed stored version.
    A missing hash still performs one hash computation and returns False.
    """
    if not hashed_password:
        pwd_context.verify(raw_password, _DUMMY_HASH)
        return False
    try:
        return pwd_context.verify(raw_password, hashed_password)
    except ValueError:
        # Unrecognized hash format
        return False


# -----------------------------------------------------------------------------
# JWT Token Handling
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: datetime
    token_type: str = "bearer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class TokenService:
    """
    Issues and verifies signed, time-bounded access tokens.

    The signing secret is supplied once at construction and never changes for
    the lifetime of the service. `clock` exists so tests can mint tokens in
    the past; verification always checks against the real current time.
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("token ttl must be positive")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, account_id: str) -> IssuedToken:
        """
        Create a JWT for `account_id` that expires after the configured TTL.
        """
        issued_at = self._clock()
        expires_at = issued_at + self._ttl
        claims = {
            "sub": account_id,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret, algorithm=ALGORITHM)
        return IssuedToken(access_token=token, expires_at=expires_at.replace(microsecond=0))

    def verify(self, token: str) -> str:
        """
        Return the account id embedded in `token`.

        Raises:
            TokenInvalid: malformed token, bad signature or missing subject.
            TokenExpired: well-formed and correctly signed, but past its exp.
        """
        if not token or not isinstance(token, str):
            raise TokenInvalid("empty token")
        # jose verifies the signature before it looks at any claim
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require_exp": True, "require_sub": True},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("token has expired") from exc
        except JWTError as exc:
            raise TokenInvalid(str(exc)) from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenInvalid("token subject is missing")
        return subject
