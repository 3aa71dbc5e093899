"""
sa_token — Short-lived service-account token issuance.

Validates tenant/service-account identifiers, resolves the regional
audience, loads a PKCS#1 RSA key from AWS Secrets Manager and signs an
RS256 JWT valid for five minutes.
"""

from sa_token.config import IssuanceInputs, IssuerConfig
from sa_token.exceptions import TokenIssuanceError
from sa_token.models import AUDIENCES, Region, SignedToken, TokenClaims
from sa_token.pipeline import issue_service_account_token

__all__ = [
    "AUDIENCES",
    "IssuanceInputs",
    "IssuerConfig",
    "Region",
    "SignedToken",
    "TokenClaims",
    "TokenIssuanceError",
    "issue_service_account_token",
]
