"""
tests/test_signer.py — Claim assembly and RS256 signing.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

import jwt
import pytest
from conftest import SERVICE_ACCOUNT_ID, TENANT_ID, US_AUDIENCE
from cryptography.hazmat.primitives.asymmetric import rsa
from sa_token import signer
from sa_token.exceptions import SigningError
from sa_token.models import ServiceAccountId, TenantId
from sa_token.signer import build_claims, generate_token_id, issue_token

PRINCIPAL = f"{TENANT_ID}.{SERVICE_ACCOUNT_ID}.ExternalServiceAccount"
_JTI_PATTERN = re.compile(r"^[a-zA-Z]{20}$")


def _issue(key: rsa.RSAPrivateKey) -> signer.SignedToken:
    return issue_token(TenantId(TENANT_ID), ServiceAccountId(SERVICE_ACCOUNT_ID), US_AUDIENCE, key)


class TestGenerateTokenId:
    def test_twenty_letters(self) -> None:
        assert _JTI_PATTERN.match(generate_token_id())

    def test_custom_length(self) -> None:
        assert len(generate_token_id(5)) == 5

    def test_not_reused(self) -> None:
        ids = {generate_token_id() for _ in range(500)}
        assert len(ids) == 500


class TestBuildClaims:
    def test_claim_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fixed = datetime(2026, 2, 25, 12, 0, 0, tzinfo=UTC)
        monkeypatch.setattr(signer, "_now_utc", lambda: fixed)
        claims = build_claims(TenantId(TENANT_ID), ServiceAccountId(SERVICE_ACCOUNT_ID), US_AUDIENCE)

        assert claims.issuer == PRINCIPAL
        assert claims.subject == PRINCIPAL
        assert claims.audience == US_AUDIENCE
        assert claims.issued_at == int(fixed.timestamp())
        assert claims.expires_at == claims.issued_at + 300
        assert _JTI_PATTERN.match(claims.token_id)

    def test_sub_second_clock_is_truncated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fixed = datetime(2026, 2, 25, 12, 0, 0, 999_999, tzinfo=UTC)
        monkeypatch.setattr(signer, "_now_utc", lambda: fixed)
        claims = build_claims(TenantId(TENANT_ID), ServiceAccountId(SERVICE_ACCOUNT_ID), US_AUDIENCE)
        assert claims.expires_at - claims.issued_at == 300


class TestIssueToken:
    def test_token_verifies_with_public_key(self, rsa_key: rsa.RSAPrivateKey) -> None:
        signed = _issue(rsa_key)
        payload = jwt.decode(
            signed.token,
            rsa_key.public_key(),
            algorithms=["RS256"],
            audience=US_AUDIENCE,
            issuer=PRINCIPAL,
        )
        assert payload["exp"] - payload["iat"] == 300
        assert payload["iss"] == payload["sub"] == PRINCIPAL
        assert payload["aud"] == US_AUDIENCE
        assert _JTI_PATTERN.match(payload["jti"])
        assert payload == signed.claims.to_payload()

    def test_compact_form_and_header(self, rsa_key: rsa.RSAPrivateKey) -> None:
        signed = _issue(rsa_key)
        assert signed.token.count(".") == 2
        header = jwt.get_unverified_header(signed.token)
        assert header["alg"] == "RS256"
        assert header["typ"] == "JWT"

    def test_claim_set_is_exact(self, rsa_key: rsa.RSAPrivateKey) -> None:
        payload = jwt.decode(_issue(rsa_key).token, options={"verify_signature": False})
        assert set(payload) == {"iss", "sub", "aud", "iat", "exp", "jti"}

    def test_each_issuance_has_fresh_jti(self, rsa_key: rsa.RSAPrivateKey) -> None:
        assert _issue(rsa_key).claims.token_id != _issue(rsa_key).claims.token_id

    def test_signing_failure(
        self, rsa_key: rsa.RSAPrivateKey, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(*_args: object, **_kwargs: object) -> str:
            raise jwt.InvalidKeyError("bad key")

        monkeypatch.setattr(signer.jwt, "encode", _boom)
        with pytest.raises(SigningError) as excinfo:
            _issue(rsa_key)
        assert isinstance(excinfo.value.__cause__, jwt.InvalidKeyError)

    def test_non_key_object_is_signing_error(self) -> None:
        with pytest.raises(SigningError):
            _issue(object())  # type: ignore[arg-type]
