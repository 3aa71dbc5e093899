"""
sa_token.models — Identity, region registry and token data types.

The region registry is static process-wide configuration: adding a region
is a code change and a deployment, never a runtime mutation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, NewType

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

IDENTIFIER_LENGTH: int = 32

# Validated, lowercased 32-char identifiers. Structurally identical; kept as
# distinct types so a tenant is never passed where a service account belongs.
TenantId = NewType("TenantId", str)
ServiceAccountId = NewType("ServiceAccountId", str)

PRINCIPAL_SUFFIX: str = "ExternalServiceAccount"

# ---------------------------------------------------------------------------
# Token lifetime
# ---------------------------------------------------------------------------

TOKEN_TTL_SECONDS: int = 5 * 60  # 5 minutes
TOKEN_ID_LENGTH: int = 20
SIGNING_ALGORITHM: str = "RS256"


# ---------------------------------------------------------------------------
# Region -> audience registry
# ---------------------------------------------------------------------------


class Region(StrEnum):
    US = "us"
    EU = "eu"
    CANADA = "canada"
    AUSTRALIA = "australia"
    LONDON = "london"
    INDIA = "india"
    SINGAPORE = "singapore"


AUDIENCES: Mapping[str, str] = MappingProxyType(
    {
        Region.US: "https://auth.alero.io/auth/realms/serviceaccounts",
        Region.EU: "https://auth.alero.eu/auth/realms/serviceaccounts",
        Region.CANADA: "https://auth.ca.alero.io/auth/realms/serviceaccounts",
        Region.AUSTRALIA: "https://auth.au.alero.io/auth/realms/serviceaccounts",
        Region.LONDON: "https://auth.uk.alero.io/auth/realms/serviceaccounts",
        Region.INDIA: "https://auth.in.alero.io/auth/realms/serviceaccounts",
        Region.SINGAPORE: "https://auth.sg.alero.io/auth/realms/serviceaccounts",
    }
)


# ---------------------------------------------------------------------------
# Secret payload
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SecretRecord:
    """Secrets Manager payload for a service-account signing key.

    password holds the base64-encoded PEM private key. The remaining fields
    are vault-account metadata carried through untouched.
    """

    password: str
    address: str | None = None
    username: str | None = None
    platformid: str | None = None
    comment: str | None = None


# ---------------------------------------------------------------------------
# Claims and signed output
# ---------------------------------------------------------------------------


def principal_name(tenant_id: TenantId, service_account_id: ServiceAccountId) -> str:
    """Return "<tenantId>.<serviceAccountId>.ExternalServiceAccount"."""
    return f"{tenant_id}.{service_account_id}.{PRINCIPAL_SUFFIX}"


@dataclass(frozen=True)
class TokenClaims:
    """Claim set embedded in every issued token.

    issuer and subject are both the service-account principal name.
    Timestamps are Unix epoch seconds.
    """

    issuer: str
    subject: str
    audience: str
    issued_at: int
    expires_at: int
    token_id: str

    def __post_init__(self) -> None:
        if self.expires_at - self.issued_at != TOKEN_TTL_SECONDS:
            raise ValueError(
                f"expires_at must be issued_at + {TOKEN_TTL_SECONDS}s, "
                f"got {self.expires_at - self.issued_at!r}s"
            )
        if len(self.token_id) != TOKEN_ID_LENGTH:
            raise ValueError(
                f"token_id must be exactly {TOKEN_ID_LENGTH} characters, "
                f"got {len(self.token_id)!r}"
            )

    def to_payload(self) -> dict[str, Any]:
        return {
            "iss": self.issuer,
            "sub": self.subject,
            "aud": self.audience,
            "iat": self.issued_at,
            "exp": self.expires_at,
            "jti": self.token_id,
        }


@dataclass(frozen=True)
class SignedToken:
    """Compact JWS plus the claims it carries. Never persisted."""

    token: str
    claims: TokenClaims
