"""
sa_token.pipeline — Ordered token issuance.

    validate tenant -> validate service account -> resolve audience
    -> acquire key -> issue token

Fails fast on the first error. Identifier and region checks run before the
Secrets Manager fetch, so malformed configuration never reaches AWS. No
claims are signed unless every earlier stage succeeded.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from aws_lambda_powertools import Logger

from sa_token.config import IssuanceInputs, IssuerConfig
from sa_token.exceptions import TokenIssuanceError
from sa_token.keys import acquire_signing_key
from sa_token.models import ServiceAccountId, SignedToken, TenantId
from sa_token.signer import issue_token
from sa_token.validation import resolve_audience, validate_identifier

logger = Logger(service="sa-token-lib")

STAGE_VALIDATE_TENANT = "validate_tenant"
STAGE_VALIDATE_SERVICE_ACCOUNT = "validate_service_account"
STAGE_RESOLVE_AUDIENCE = "resolve_audience"
STAGE_ACQUIRE_KEY = "acquire_key"
STAGE_ISSUE_TOKEN = "issue_token"


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Tag any TokenIssuanceError raised inside the block with the stage name."""
    try:
        yield
    except TokenIssuanceError as exc:
        if exc.stage is None:
            exc.stage = name
        raise


def issue_service_account_token(inputs: IssuanceInputs, config: IssuerConfig) -> SignedToken:
    """Run the full issuance pipeline for one invocation.

    Raises:
        TokenIssuanceError: the first failing stage's error, with .stage set.
    """
    with _stage(STAGE_VALIDATE_TENANT):
        tenant_id = TenantId(validate_identifier(inputs.tenant_id))
    with _stage(STAGE_VALIDATE_SERVICE_ACCOUNT):
        service_account_id = ServiceAccountId(validate_identifier(inputs.service_account_id))
    with _stage(STAGE_RESOLVE_AUDIENCE):
        audience = resolve_audience(inputs.region, config.audiences)

    with _stage(STAGE_ACQUIRE_KEY):
        key = acquire_signing_key(inputs.secret_name, config)
    with _stage(STAGE_ISSUE_TOKEN):
        signed = issue_token(tenant_id, service_account_id, audience, key)

    logger.info(
        "Token issued",
        extra={
            "tenant_id": tenant_id,
            "service_account_id": service_account_id,
            "audience": audience,
            "jti": signed.claims.token_id,
            "exp": signed.claims.expires_at,
        },
    )
    return signed
