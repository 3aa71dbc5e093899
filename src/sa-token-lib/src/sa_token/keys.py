"""
sa_token.keys — Signing key acquisition from AWS Secrets Manager.

Key material is fetched and parsed on every call and never cached: it lives
only for the duration of one invocation.

Decode chain (each step has its own failure kind):
    SecretString --json--> SecretRecord.password --base64--> PEM text
    --trim + first PEM block--> DER --PKCS#1--> RSAPrivateKey
"""

from __future__ import annotations

import base64
import json
import re
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sa_token.config import IssuerConfig
from sa_token.exceptions import (
    EmptyKeyMaterial,
    InvalidEncoding,
    InvalidPEM,
    MalformedSecret,
    MissingSecretName,
    SecretStoreError,
    UnsupportedKeyFormat,
)
from sa_token.models import SecretRecord

logger = Logger(service="sa-token-lib")

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[^\r\n-]+)-----\r?\n(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)
_PASSTHROUGH_FIELDS = ("address", "username", "platformid", "comment")


def acquire_signing_key(secret_name: str, config: IssuerConfig) -> rsa.RSAPrivateKey:
    """Fetch the named secret and return the PKCS#1 RSA private key it holds.

    Raises:
        MissingSecretName:    secret_name is empty (no store call is made).
        SecretStoreError:     Secrets Manager call failed.
        MalformedSecret:      SecretString is absent or not a SecretRecord object.
        InvalidEncoding, EmptyKeyMaterial, InvalidPEM, UnsupportedKeyFormat:
                              see decode_private_key().
    """
    if not secret_name:
        raise MissingSecretName("secret name is not set")

    secret_string = _fetch_secret_string(secret_name, config)
    record = parse_secret_record(secret_string)
    return decode_private_key(record.password)


def _fetch_secret_string(secret_name: str, config: IssuerConfig) -> str | None:
    logger.debug(
        "Fetching signing key secret",
        extra={"secret_name": secret_name, "version_stage": config.secret_version_stage},
    )
    try:
        response = config.secrets_client.get_secret_value(
            SecretId=secret_name,
            VersionStage=config.secret_version_stage,
        )
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "Unknown")
        raise SecretStoreError(
            f"unable to fetch secret {secret_name!r}: {code}", aws_error_code=code
        ) from exc
    except BotoCoreError as exc:
        raise SecretStoreError(f"unable to fetch secret {secret_name!r}: {exc}") from exc

    secret_string = (response or {}).get("SecretString")
    return str(secret_string) if secret_string is not None else None


def parse_secret_record(secret_string: str | None) -> SecretRecord:
    """Parse a SecretString JSON document into a SecretRecord.

    An absent password is treated as empty so it surfaces later as
    EmptyKeyMaterial, matching a secret whose key was never populated.
    """
    if secret_string is None:
        raise MalformedSecret("secret has no SecretString value")
    try:
        document = json.loads(secret_string)
    except json.JSONDecodeError as exc:
        raise MalformedSecret(f"secret is not valid JSON: {exc.msg}") from exc
    if not isinstance(document, dict):
        raise MalformedSecret("secret JSON must be an object")

    password = document.get("password")
    if password is None:
        password = ""
    if not isinstance(password, str):
        raise MalformedSecret("secret field 'password' must be a string")

    passthrough = {name: _optional_str(document, name) for name in _PASSTHROUGH_FIELDS}
    return SecretRecord(password=password, **passthrough)


def _optional_str(document: dict[str, Any], name: str) -> str | None:
    value = document.get(name)
    if value is None or isinstance(value, str):
        return value
    raise MalformedSecret(f"secret field {name!r} must be a string")


def decode_private_key(password: str) -> rsa.RSAPrivateKey:
    """Decode a base64 PEM-wrapped PKCS#1 RSA private key.

    Raises:
        InvalidEncoding:      password is not standard base64.
        EmptyKeyMaterial:     password decodes to nothing.
        InvalidPEM:           decoded text holds no PEM block.
        UnsupportedKeyFormat: PEM block is not a PKCS#1 RSA private key.
    """
    # line-wrapped base64 is accepted
    compact = password.replace("\r", "").replace("\n", "")
    try:
        pem_bytes = base64.b64decode(compact, validate=True)
    except ValueError as exc:
        raise InvalidEncoding("private key is not valid base64") from exc

    if not pem_bytes:
        raise EmptyKeyMaterial("private key is empty")

    der = _first_pem_block(pem_bytes.strip())
    return _load_pkcs1(der)


def _first_pem_block(data: bytes) -> bytes:
    """Return the DER bytes of the first well-formed PEM block in data."""
    for match in _PEM_BLOCK.finditer(data):
        body = _strip_pem_headers(match.group("body"))
        try:
            return base64.b64decode(b"".join(body.split()), validate=True)
        except ValueError:
            continue
    raise InvalidPEM("unable to decode private key: no PEM block found")


def _strip_pem_headers(body: bytes) -> bytes:
    # RFC 1421 headers ("Proc-Type: ...") end at the first blank line
    lines = body.splitlines()
    if lines and b":" in lines[0]:
        for index, line in enumerate(lines):
            if not line.strip():
                return b"\n".join(lines[index + 1 :])
        return b""
    return body


def _load_pkcs1(der: bytes) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise UnsupportedKeyFormat("private key is not a PKCS#1 RSA private key") from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise UnsupportedKeyFormat(
            f"private key is {type(key).__name__}, expected a PKCS#1 RSA private key"
        )

    # load_der_private_key also accepts PKCS#8; only the PKCS#1 encoding round-trips exactly
    pkcs1 = key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    if pkcs1 != der:
        raise UnsupportedKeyFormat("private key is not PKCS#1 encoded (PKCS#8 is not supported)")
    return key
