"""
sa_token.config — Per-invocation inputs and process-wide issuer configuration.

IssuanceInputs is re-read from the environment on every invocation.
IssuerConfig is built once per process (see token_issuer.handler.get_config)
and passed explicitly into the pipeline.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sa_token.models import AUDIENCES

TENANT_ID_ENV = "TENANT_ID"
SERVICE_ACCOUNT_ID_ENV = "SERVICE_ACCOUNT_ID"
REGION_ENV = "REGION"
SECRET_NAME_ENV = "SECRET_NAME"  # pragma: allowlist secret
SECRET_VERSION_STAGE_ENV = "SECRET_VERSION_STAGE"  # pragma: allowlist secret

DEFAULT_SECRET_VERSION_STAGE = "AWSCURRENT"  # pragma: allowlist secret


@dataclass(frozen=True)
class IssuanceInputs:
    """Raw, un-validated issuance inputs.

    Missing variables are kept as empty strings so that absence surfaces as
    a validation failure in the pipeline rather than a KeyError here.
    """

    tenant_id: str
    service_account_id: str
    region: str
    secret_name: str

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> IssuanceInputs:
        env = os.environ if environ is None else environ
        return cls(
            tenant_id=env.get(TENANT_ID_ENV, ""),
            service_account_id=env.get(SERVICE_ACCOUNT_ID_ENV, ""),
            region=env.get(REGION_ENV, ""),
            secret_name=env.get(SECRET_NAME_ENV, ""),
        )


@dataclass(frozen=True)
class IssuerConfig:
    """Read-only collaborators shared by every invocation in a process.

    secrets_client: boto3 "secretsmanager" client (or any object exposing
                    get_secret_value(SecretId=..., VersionStage=...)).
    audiences:      region -> audience URL registry.
    """

    secrets_client: Any
    audiences: Mapping[str, str] = field(default_factory=lambda: AUDIENCES)
    secret_version_stage: str = DEFAULT_SECRET_VERSION_STAGE
