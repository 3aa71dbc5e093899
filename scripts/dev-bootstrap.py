"""
dev-bootstrap.py — Local development environment seeding script.

Seeds LocalStack Secrets Manager with:
  - A signing key secret in the vault-account SecretRecord shape, holding a
    freshly generated RSA-2048 key in PKCS#1 PEM, base64-encoded in "password"
  - .env.test with TENANT_ID / SERVICE_ACCOUNT_ID / REGION / SECRET_NAME for
    the token-issuer Lambda, plus the matching public key for verification

Idempotent — safe to run multiple times. An existing secret is never
overwritten; the public key is re-derived from whatever the secret holds.

Usage:
    uv run python scripts/dev-bootstrap.py
"""

from __future__ import annotations

import base64
import json
import os
import sys
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import ClientError
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# ---------------------------------------------------------------------------
# Repository root (used for .env.test default path)
# ---------------------------------------------------------------------------

_REPO_ROOT = Path(__file__).resolve().parents[1]

# ---------------------------------------------------------------------------
# Fixture constants: stable IDs for local dev test fixtures
# ---------------------------------------------------------------------------

_DEV_TENANT_ID = "11ed307a252abc12345ab76ae4e1234a"
_DEV_SERVICE_ACCOUNT_ID = "12ed305a257abc15645ab76ae4e1234a"
_DEV_REGION = "us"
_DEV_SECRET_NAME = "local/token-issuer/signing-key"  # pragma: allowlist secret

_RSA_KEY_SIZE = 2048
_RSA_PUBLIC_EXPONENT = 65537


# ---------------------------------------------------------------------------
# AWS client helpers: region and endpoint always read from environment
# ---------------------------------------------------------------------------


def _get_region() -> str:
    """Read AWS region from environment.  Fails loudly if not set."""
    return os.environ["AWS_REGION"]


def _get_endpoint() -> str | None:
    """Read LocalStack endpoint from environment.

    Returns None when the variable is absent so that boto3 uses its default
    service endpoint and moto can intercept calls in unit tests.
    """
    return os.environ.get("LOCALSTACK_ENDPOINT") or None


def _secretsmanager_client() -> Any:
    """Create a Secrets Manager client, routing to LocalStack when LOCALSTACK_ENDPOINT is set."""
    return boto3.client(
        "secretsmanager", region_name=_get_region(), endpoint_url=_get_endpoint()
    )


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


def _generate_pkcs1_pem() -> bytes:
    key = rsa.generate_private_key(public_exponent=_RSA_PUBLIC_EXPONENT, key_size=_RSA_KEY_SIZE)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _secret_document(private_pem: bytes) -> str:
    return json.dumps(
        {
            "address": "localhost",
            "username": "local-token-issuer",
            "platformid": "ExternalServiceAccount",
            "password": base64.b64encode(private_pem).decode(),
            "comment": "Generated by scripts/dev-bootstrap.py — local dev only",
        }
    )


def _public_pem_from_secret(secret_string: str) -> bytes:
    private_pem = base64.b64decode(json.loads(secret_string)["password"])
    private_key = serialization.load_pem_private_key(private_pem, password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


# ---------------------------------------------------------------------------
# Secrets Manager seeding
# ---------------------------------------------------------------------------


def _get_or_create_signing_secret(secretsmanager: Any, secret_name: str) -> str:
    """Create the signing key secret if absent; return its SecretString.

    The key is created once and reused on subsequent runs so that tokens
    minted during a dev session stay verifiable with the same public key.
    """
    try:
        secretsmanager.create_secret(
            Name=secret_name,
            Description="Token issuer PKCS#1 signing key (local dev)",
            SecretString=_secret_document(_generate_pkcs1_pem()),
        )
        _log(f"  [+] created secret {secret_name}")
    except ClientError as exc:
        if (exc.response.get("Error") or {}).get("Code") != "ResourceExistsException":
            raise
        _log(f"  [=] secret {secret_name} already exists")

    response = secretsmanager.get_secret_value(SecretId=secret_name, VersionStage="AWSCURRENT")
    return str(response["SecretString"])


# ---------------------------------------------------------------------------
# .env.test writer
# ---------------------------------------------------------------------------


def _write_env_test(env_test_path: Path, public_key_path: Path) -> None:
    """Write token-issuer configuration to .env.test.

    The file is regenerated on every bootstrap run.  .env.test is gitignored.
    """
    endpoint = _get_endpoint() or "http://localhost:4566"
    content = (
        "# Generated by scripts/dev-bootstrap.py — do not edit manually\n"
        f"TENANT_ID={_DEV_TENANT_ID}\n"
        f"SERVICE_ACCOUNT_ID={_DEV_SERVICE_ACCOUNT_ID}\n"
        f"REGION={_DEV_REGION}\n"
        f"SECRET_NAME={_DEV_SECRET_NAME}\n"
        f"SIGNING_PUBLIC_KEY_PATH={public_key_path}\n"
        f"AWS_REGION={_get_region()}\n"
        f"LOCALSTACK_ENDPOINT={endpoint}\n"
    )
    env_test_path.write_text(content)
    _log(f"  [=] wrote {env_test_path}")


# ---------------------------------------------------------------------------
# Output helper
# ---------------------------------------------------------------------------


def _log(msg: str) -> None:
    print(msg, flush=True)


# ---------------------------------------------------------------------------
# Public entrypoint
# ---------------------------------------------------------------------------


def run(*, env_test_path: Path | None = None) -> None:
    """Seed the local development environment.

    Args:
        env_test_path: Override the default .env.test path.  Used in tests.
                       The public key is written beside it.
    """
    if env_test_path is None:
        env_test_path = _REPO_ROOT / ".env.test"
    public_key_path = env_test_path.with_name("signing-key.pub.pem")

    _log("==> dev-bootstrap: seeding local environment")

    _log("--- Secrets Manager")
    secret_string = _get_or_create_signing_secret(_secretsmanager_client(), _DEV_SECRET_NAME)

    _log("--- Public key")
    public_key_path.write_bytes(_public_pem_from_secret(secret_string))
    _log(f"  [=] wrote {public_key_path}")

    _log("--- .env.test")
    _write_env_test(env_test_path, public_key_path)

    _log("==> dev-bootstrap: complete")


def main() -> None:
    """CLI entrypoint with structured error reporting."""
    try:
        run()
    except KeyError as exc:
        print(f"ERROR: required environment variable {exc} is not set", file=sys.stderr)
        print("  Hint: export AWS_REGION=eu-west-2", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
