"""
HS256 bearer tokens.

    verifier = TokenVerifier(secret="...")
    token = verifier.issue(Identity(id="u1", email="a@b.c"))
    verifier.verify(f"Bearer {token}")   # -> Identity | None

Tokens are compact JWS (header.payload.signature) signed with HMAC-SHA256.
verify() never raises: anything that is not a valid, unexpired token yields None.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from storefront.identity._types import Identity, Role

logger = logging.getLogger(__name__)

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()


def _b64url_decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)


def _sign(signing_input: bytes, secret: str) -> str:
    return _b64url_encode(hmac.new(secret.encode(), signing_input, hashlib.sha256).digest())


def encode(payload: dict[str, Any], secret: str) -> str:
    header_b64 = _b64url_encode(json.dumps(_HEADER, separators=(",", ":")).encode())
    payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":"), default=str).encode())
    signing_input = f"{header_b64}.{payload_b64}".encode()
    return f"{header_b64}.{payload_b64}.{_sign(signing_input, secret)}"


def decode(token: str, secret: str) -> dict[str, Any] | None:
    """Payload of a correctly signed token, or None."""
    try:
        header_b64, payload_b64, sig_b64 = token.split(".")
    except ValueError:
        return None

    expected = _sign(f"{header_b64}.{payload_b64}".encode(), secret)
    if not hmac.compare_digest(expected, sig_b64):
        return None

    try:
        header = json.loads(_b64url_decode(header_b64))
        payload = json.loads(_b64url_decode(payload_b64))
    except (ValueError, UnicodeDecodeError):
        return None

    if header.get("alg") != "HS256" or not isinstance(payload, dict):
        return None
    return payload


# ═══════════════════════════════════════════════════════════════════════════════
# Verifier
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TokenVerifier:
    secret: str
    ttl: timedelta = timedelta(hours=24)

    def issue(self, identity: Identity, *, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        return encode(
            {
                "sub": identity.id,
                "email": identity.email,
                "role": identity.role.value,
                "iat": int(issued.timestamp()),
                "exp": int((issued + self.ttl).timestamp()),
            },
            self.secret,
        )

    def verify(self, credential: str | None, *, now: datetime | None = None) -> Identity | None:
        if not credential:
            return None

        token = credential.strip()
        if token[:7].lower() == "bearer ":
            token = token[7:].strip()

        payload = decode(token, self.secret)
        if payload is None:
            logger.debug("Rejected token: bad signature or malformed")
            return None

        exp = payload.get("exp")
        current = (now or datetime.now(timezone.utc)).timestamp()
        if not isinstance(exp, int | float) or exp < current:
            logger.debug("Rejected token: expired or missing exp")
            return None

        try:
            role = Role(payload.get("role", Role.CUSTOMER.value))
        except ValueError:
            return None

        sub = payload.get("sub")
        if sub is None or sub == "":
            return None

        return Identity(id=str(sub), email=str(payload.get("email", "")), role=role)


__all__ = ("TokenVerifier", "encode", "decode")
