"""
sa_token.validation — Identifier validation and region -> audience resolution.

Both run before any Secrets Manager call so malformed configuration never
costs an external request.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from sa_token.exceptions import (
    InvalidIdentifier,
    MissingIdentifier,
    MissingRegion,
    UnsupportedRegion,
)
from sa_token.models import AUDIENCES

_IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9]{32}$")


def validate_identifier(raw: str) -> str:
    """Validate a tenant or service-account identifier.

    The check is role-agnostic: callers wrap the result in TenantId or
    ServiceAccountId. Input is lowercased before matching and the
    lowercased value is returned.

    Raises:
        MissingIdentifier: raw is empty.
        InvalidIdentifier: lowercased raw is not 32 chars of [a-z0-9].
    """
    if not raw:
        raise MissingIdentifier("identifier is not set")
    normalized = raw.lower()
    # fullmatch, so a trailing newline is not accepted by "$"
    if not _IDENTIFIER_PATTERN.fullmatch(normalized):
        raise InvalidIdentifier(f"invalid identifier provided: {raw!r}")
    return normalized


def resolve_audience(region: str, audiences: Mapping[str, str] = AUDIENCES) -> str:
    """Map a region name to its fixed audience URL (case-insensitive, exact match).

    Raises:
        MissingRegion: region is empty.
        UnsupportedRegion: lowercased region is not in the registry.
    """
    if not region:
        raise MissingRegion("region is not set")
    audience = audiences.get(region.lower())
    if audience is None:
        supported = ", ".join(str(name) for name in audiences)
        raise UnsupportedRegion(
            f"invalid region provided: {region!r}. Valid regions are: {supported}"
        )
    return audience
