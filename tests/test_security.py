import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from todo_api.errors import TokenExpired, TokenInvalid
from todo_api.security import TokenService, hash_password, verify_password

SECRET = "unit-test-secret"


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert "secret123" not in hashed
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_hash_is_salted(self):
        assert hash_password("secret123") != hash_password("secret123")

    def test_missing_or_garbage_hash_never_verifies(self):
        assert verify_password("secret123", None) is False
        assert verify_password("secret123", "") is False
        assert verify_password("secret123", "not-a-hash") is False


class TestTokenService:
    def test_issue_then_verify_round_trips(self):
        service = TokenService(SECRET)
        issued = service.issue("account-1")
        assert issued.token_type == "bearer"
        assert service.verify(issued.access_token) == "account-1"

    def test_claims(self):
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        service = TokenService(SECRET, ttl=timedelta(minutes=30), clock=lambda: now)
        issued = service.issue("account-1")
        claims = json.loads(_b64decode(issued.access_token.split(".")[1]))
        assert claims == {
            "sub": "account-1",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=30)).timestamp()),
        }
        assert issued.expires_at == now + timedelta(minutes=30)

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        service = TokenService(SECRET, ttl=timedelta(hours=1), clock=lambda: past)
        token = service.issue("account-1").access_token
        with pytest.raises(TokenExpired):
            TokenService(SECRET).verify(token)

    def test_other_secret_is_invalid(self):
        token = TokenService("another-secret").issue("account-1").access_token
        with pytest.raises(TokenInvalid):
            TokenService(SECRET).verify(token)

    def test_signature_checked_before_expiry(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = TokenService("another-secret", ttl=timedelta(hours=1), clock=lambda: past).issue("a").access_token
        with pytest.raises(TokenInvalid):
            TokenService(SECRET).verify(token)

    def test_payload_mutation_is_invalid(self):
        service = TokenService(SECRET)
        header, payload, signature = service.issue("account-1").access_token.split(".")
        claims = json.loads(_b64decode(payload))
        claims["sub"] = "account-2"
        forged = f"{header}.{_b64encode(json.dumps(claims).encode())}.{signature}"
        with pytest.raises(TokenInvalid):
            service.verify(forged)

    def test_extended_expiry_is_invalid(self):
        service = TokenService(SECRET)
        header, payload, signature = service.issue("account-1").access_token.split(".")
        claims = json.loads(_b64decode(payload))
        claims["exp"] += 3600
        forged = f"{header}.{_b64encode(json.dumps(claims).encode())}.{signature}"
        with pytest.raises(TokenInvalid):
            service.verify(forged)

    def test_signature_mutation_is_invalid(self):
        service = TokenService(SECRET)
        header, payload, signature = service.issue("account-1").access_token.split(".")
        # Change a middle character; the last one may only carry padding bits
        i = len(signature) // 2
        replacement = "A" if signature[i] != "A" else "B"
        forged = f"{header}.{payload}.{signature[:i]}{replacement}{signature[i + 1:]}"
        with pytest.raises(TokenInvalid):
            service.verify(forged)

    def test_unsigned_token_is_invalid(self):
        service = TokenService(SECRET)
        header = _b64encode(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        payload = _b64encode(json.dumps({"sub": "account-1", "exp": exp}).encode())
        with pytest.raises(TokenInvalid):
            service.verify(f"{header}.{payload}.")

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c", "...."])
    def test_malformed_tokens(self, token):
        with pytest.raises(TokenInvalid):
            TokenService(SECRET).verify(token)

    def test_token_without_subject_is_invalid(self):
        from jose import jwt

        exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            TokenService(SECRET).verify(token)

    def test_constructor_rejects_bad_config(self):
        with pytest.raises(ValueError):
            TokenService("")
        with pytest.raises(ValueError):
            TokenService(SECRET, ttl=timedelta(0))
