"""
sa_token.signer — Claim assembly and RS256 signing.

Deterministic given its inputs except for the wall clock and the random
jti nonce. The nonce only needs to be unique, not unpredictable.
"""

from __future__ import annotations

import secrets
import string
from datetime import UTC, datetime

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa

from sa_token.exceptions import SigningError
from sa_token.models import (
    SIGNING_ALGORITHM,
    TOKEN_ID_LENGTH,
    TOKEN_TTL_SECONDS,
    ServiceAccountId,
    SignedToken,
    TenantId,
    TokenClaims,
    principal_name,
)

_TOKEN_ID_ALPHABET = string.ascii_letters


def _now_utc() -> datetime:
    return datetime.now(UTC)


def generate_token_id(length: int = TOKEN_ID_LENGTH) -> str:
    """Return a random string of ASCII letters for the jti claim."""
    return "".join(secrets.choice(_TOKEN_ID_ALPHABET) for _ in range(length))


def build_claims(
    tenant_id: TenantId, service_account_id: ServiceAccountId, audience: str
) -> TokenClaims:
    principal = principal_name(tenant_id, service_account_id)
    # Single clock read so exp - iat is exactly the TTL
    issued_at = int(_now_utc().timestamp())
    return TokenClaims(
        issuer=principal,
        subject=principal,
        audience=audience,
        issued_at=issued_at,
        expires_at=issued_at + TOKEN_TTL_SECONDS,
        token_id=generate_token_id(),
    )


def issue_token(
    tenant_id: TenantId,
    service_account_id: ServiceAccountId,
    audience: str,
    key: rsa.RSAPrivateKey,
) -> SignedToken:
    """Build the claim set and sign it with RS256.

    Raises:
        SigningError: PyJWT or cryptography rejected the key or payload.
    """
    claims = build_claims(tenant_id, service_account_id, audience)
    try:
        token = jwt.encode(claims.to_payload(), key, algorithm=SIGNING_ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SigningError(f"unable to sign token: {type(exc).__name__}") from exc
    return SignedToken(token=token, claims=claims)
