"""
sa_token.exceptions — Failure kinds raised by the token issuance pipeline.

Every stage raises a subclass of TokenIssuanceError and never recovers
locally. The pipeline tags the exception with the stage that raised it;
the Lambda boundary logs code, stage and message and returns a uniform
failure response.
"""

from __future__ import annotations


class TokenIssuanceError(Exception):
    """
    Base class for every issuance failure.

    Attributes:
        code:  Stable machine-readable kind, e.g. "INVALID_IDENTIFIER".
        stage: Pipeline stage that raised the error. None until the
               pipeline tags it (see sa_token.pipeline).

    Messages must never contain private key material.
    """

    code = "TOKEN_ISSUANCE_ERROR"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"{self.stage}: {message}"
        return message


# ---------------------------------------------------------------------------
# Identifier and region input
# ---------------------------------------------------------------------------


class MissingIdentifier(TokenIssuanceError):
    code = "MISSING_IDENTIFIER"


class InvalidIdentifier(TokenIssuanceError):
    code = "INVALID_IDENTIFIER"


class MissingRegion(TokenIssuanceError):
    code = "MISSING_REGION"


class UnsupportedRegion(TokenIssuanceError):
    code = "UNSUPPORTED_REGION"


class MissingSecretName(TokenIssuanceError):
    code = "MISSING_SECRET_NAME"


# ---------------------------------------------------------------------------
# Secret store and key material
# ---------------------------------------------------------------------------


class SecretStoreError(TokenIssuanceError):
    """Secrets Manager rejected or failed the fetch (network, permission, not found).

    Attributes:
        aws_error_code: botocore error code when available, e.g.
                        "ResourceNotFoundException".
    """

    code = "SECRET_STORE_ERROR"

    def __init__(
        self, message: str, *, aws_error_code: str | None = None, stage: str | None = None
    ) -> None:
        self.aws_error_code = aws_error_code
        super().__init__(message, stage=stage)


class MalformedSecret(TokenIssuanceError):
    code = "MALFORMED_SECRET"


class InvalidEncoding(TokenIssuanceError):
    code = "INVALID_ENCODING"


class EmptyKeyMaterial(TokenIssuanceError):
    code = "EMPTY_KEY_MATERIAL"


class InvalidPEM(TokenIssuanceError):
    code = "INVALID_PEM"


class UnsupportedKeyFormat(TokenIssuanceError):
    """The PEM block is not a PKCS#1 RSA private key.

    PKCS#8 ("BEGIN PRIVATE KEY") keys are rejected even when they hold a
    valid RSA key: only the legacy PKCS#1 structure is accepted.
    """

    code = "UNSUPPORTED_KEY_FORMAT"


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


class SigningError(TokenIssuanceError):
    code = "SIGNING_ERROR"
