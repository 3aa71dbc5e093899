"""
token_issuer.handler — Service-account token issuing Lambda.

Reads TENANT_ID, SERVICE_ACCOUNT_ID, REGION and SECRET_NAME from the
function environment, runs the sa_token issuance pipeline and returns the
signed JWT as the API Gateway proxy response body.

Every failure maps to the same 404 response with a fixed body. The error
code, stage and detail are logged and never returned to the caller, so
Secrets Manager and key diagnostics do not leak.
"""

import os
from datetime import UTC, datetime, timedelta
from typing import Any

import boto3
from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext
from sa_token import IssuanceInputs, IssuerConfig, TokenIssuanceError, issue_service_account_token
from sa_token.config import DEFAULT_SECRET_VERSION_STAGE, SECRET_VERSION_STAGE_ENV

logger = Logger(service="token-issuer")
tracer = Tracer()

FAILURE_STATUS_CODE = 404
FAILURE_BODY = "Error generating Access Token"

# Global config: built once per process, reused across warm starts
_config: IssuerConfig | None = None


def get_config() -> IssuerConfig:
    """Lazy initialization of the process-wide IssuerConfig."""
    global _config
    if _config is None:
        region = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
        _config = IssuerConfig(
            secrets_client=boto3.client("secretsmanager", region_name=region),
            secret_version_stage=os.environ.get(
                SECRET_VERSION_STAGE_ENV, DEFAULT_SECRET_VERSION_STAGE
            ),
        )
    return _config


def _response(status_code: int, body: str) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/plain", "Cache-Control": "no-store"},
        "body": body,
    }


def _log_invocation(inputs: IssuanceInputs, context: LambdaContext) -> None:
    remaining_ms = context.get_remaining_time_in_millis()
    deadline = datetime.now(UTC) + timedelta(milliseconds=remaining_ms)
    logger.info(
        "Token issuance requested",
        extra={
            "aws_region": os.environ.get("AWS_REGION"),
            "tenant_id": inputs.tenant_id,
            "service_account_id": inputs.service_account_id,
            "region": inputs.region,
            "secret_name": inputs.secret_name,
            "remaining_time_ms": remaining_ms,
            "deadline": deadline.isoformat(),
        },
    )


@logger.inject_lambda_context(
    correlation_id_path=correlation_paths.API_GATEWAY_REST, clear_state=True
)
@tracer.capture_lambda_handler
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Lambda entry point. The event carries no issuance inputs."""
    inputs = IssuanceInputs.from_environ()
    _log_invocation(inputs, context)

    try:
        signed = issue_service_account_token(inputs, get_config())
    except TokenIssuanceError as exc:
        logger.warning(
            "Token issuance failed",
            extra={"error_code": exc.code, "stage": exc.stage, "error": str(exc)},
        )
        return _response(FAILURE_STATUS_CODE, FAILURE_BODY)
    except Exception:
        logger.exception("Unexpected error during token issuance")
        return _response(FAILURE_STATUS_CODE, FAILURE_BODY)

    logger.append_keys(jti=signed.claims.token_id)
    logger.info("Access token generated", extra={"exp": signed.claims.expires_at})
    return _response(200, signed.token)
