"""Exchange of a workflow OIDC token for temporary AWS credentials.

Cognito identity pool federation is two calls:

1. ``GetId`` maps the OIDC token to a Cognito identity id.
2. ``GetCredentialsForIdentity`` returns credentials for the pool's
   authenticated role.

Both calls are unauthenticated, so the client is created with unsigned
requests and does not depend on any ambient AWS credentials.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import boto3
import structlog
from botocore import UNSIGNED
from botocore.config import Config as BotocoreConfig
from botocore.exceptions import ClientError

from ..errors import IdentityExchangeError
from ..models import CredentialSet
from ..runner import SecretMasker

logger = structlog.get_logger(__name__)

IDENTITY_PROVIDER = "token.actions.githubusercontent.com"
AUDIENCE = "cognito-identity.amazonaws.com"


def format_expiration(expiration: Any) -> str:
    """Render the Cognito expiration as ISO-8601 UTC with millisecond precision.

    Returns "" when the response carried no expiration.
    """
    if not expiration:
        return ""
    if isinstance(expiration, datetime):
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        return expiration.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return str(expiration)


class IdentityExchange:
    """Obtains AWS credentials from a Cognito identity pool for the running workflow.

    Usage:
        exchange = IdentityExchange(masker, GitHubOIDCTokenProvider())
        credentials = exchange.exchange(pool_id, account_id, region="eu-central-1")

    Attributes:
        masker: Registry every secret is added to before it can be logged
        token_provider: Callable returning an OIDC token for an audience
    """

    def __init__(
        self,
        masker: SecretMasker,
        token_provider: Callable[[str], str],
        client_factory: Optional[Callable[[str], Any]] = None,
    ):
        self.masker = masker
        self.token_provider = token_provider
        self._client_factory = client_factory or self._create_client

    @staticmethod
    def _create_client(region: str):
        return boto3.client(
            "cognito-identity",
            region_name=region,
            config=BotocoreConfig(signature_version=UNSIGNED),
        )

    def exchange(self, pool_id: str, account_id: str, region: str) -> CredentialSet:
        """Run the two-step federation.

        Args:
            pool_id: Cognito identity pool id
            account_id: AWS account owning the pool
            region: Region of the pool

        Returns:
            Complete CredentialSet

        Raises:
            IdentityTokenError: If the OIDC token cannot be obtained
            IdentityExchangeError: If Cognito returns no identity id or incomplete credentials
            ClientError: If a Cognito call is rejected
        """
        logger.info("Requesting GitHub OIDC token...")
        token = self.token_provider(AUDIENCE)
        self.masker.register(token)

        client = self._client_factory(region)
        logins = {IDENTITY_PROVIDER: token}

        logger.info("Exchanging OIDC token for Cognito identity...", identity_pool=pool_id, region=region)
        try:
            response = client.get_id(IdentityPoolId=pool_id, AccountId=account_id, Logins=logins)
        except ClientError as e:
            logger.error(
                "Cognito GetId failed",
                identity_pool=pool_id,
                error_code=e.response.get("Error", {}).get("Code"),
            )
            raise

        identity_id = response.get("IdentityId")
        if not identity_id:
            raise IdentityExchangeError("Failed to obtain Identity ID from Cognito Identity Pool")

        logger.info("Obtaining AWS credentials from Cognito...", identity_id=identity_id)
        try:
            response = client.get_credentials_for_identity(IdentityId=identity_id, Logins=logins)
        except ClientError as e:
            logger.error(
                "Cognito GetCredentialsForIdentity failed",
                identity_id=identity_id,
                error_code=e.response.get("Error", {}).get("Code"),
            )
            raise

        credentials = response.get("Credentials") or {}
        access_key_id = credentials.get("AccessKeyId") or ""
        secret_key = credentials.get("SecretKey") or ""
        session_token = credentials.get("SessionToken") or ""

        # Mask whatever arrived before anything else can fail and log it
        for value in (access_key_id, secret_key, session_token):
            self.masker.register(value)

        if not access_key_id or not secret_key or not session_token:
            raise IdentityExchangeError("Failed to obtain AWS credentials from Cognito")

        expiration = format_expiration(credentials.get("Expiration"))
        logger.info("AWS credentials obtained", expires_at=expiration or None)

        return CredentialSet(
            access_key_id=access_key_id,
            secret_access_key=secret_key,
            session_token=session_token,
            expiration=expiration,
        )
