"""
Shared fixtures for sa_token tests: RSA keys in PKCS#1 and PKCS#8 form,
SecretRecord builders and an in-memory Secrets Manager stand-in.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from sa_token.config import IssuerConfig

TENANT_ID = "11ed307a252abc12345ab76ae4e1234a"
SERVICE_ACCOUNT_ID = "12ed305a257abc15645ab76ae4e1234a"
SECRET_NAME = "service-accounts/signing-key"  # pragma: allowlist secret
US_AUDIENCE = "https://auth.alero.io/auth/realms/serviceaccounts"


def pem_for(key: Any, fmt: serialization.PrivateFormat) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=fmt,
        encryption_algorithm=serialization.NoEncryption(),
    )


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def secret_string(password: Any, **extra: Any) -> str:
    """Build a SecretString document in the vault-account shape."""
    document = {
        "address": "auth.alero.io",
        "username": "svc-token-issuer",
        "platformid": "ExternalServiceAccount",
        "password": password,
        "comment": "service account signing key",
    }
    document.update(extra)
    return json.dumps(document)


class FakeSecretsClient:
    """Minimal stand-in for a boto3 secretsmanager client."""

    def __init__(self, response: dict[str, Any] | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def get_secret_value(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response or {}


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pkcs1_pem(rsa_key: rsa.RSAPrivateKey) -> bytes:
    return pem_for(rsa_key, serialization.PrivateFormat.TraditionalOpenSSL)


@pytest.fixture(scope="session")
def pkcs8_pem(rsa_key: rsa.RSAPrivateKey) -> bytes:
    return pem_for(rsa_key, serialization.PrivateFormat.PKCS8)


@pytest.fixture(scope="session")
def ec_pem() -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    return pem_for(key, serialization.PrivateFormat.TraditionalOpenSSL)


@pytest.fixture
def secrets_client(pkcs1_pem: bytes) -> FakeSecretsClient:
    return FakeSecretsClient(response={"SecretString": secret_string(b64(pkcs1_pem))})


@pytest.fixture
def config(secrets_client: FakeSecretsClient) -> IssuerConfig:
    return IssuerConfig(secrets_client=secrets_client)
