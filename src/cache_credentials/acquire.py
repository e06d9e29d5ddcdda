"""Credential acquisition phase.

Exchanges the workflow OIDC token for AWS credentials, persists them to a
per-run file and publishes the file path and credentials as step outputs.
"""

from typing import Mapping, Optional

import structlog

from .auth import GitHubOIDCTokenProvider, IdentityExchange
from .config import DEFAULT_ENVIRONMENT, DEFAULT_POOLS, PoolSelector, Settings, resolve_pool
from .models import write_credentials_file
from .runner import ActionsContext

logger = structlog.get_logger(__name__)


def run(
    context: ActionsContext,
    settings: Settings,
    pools: Mapping[str, PoolSelector] = DEFAULT_POOLS,
    exchange: Optional[IdentityExchange] = None,
) -> bool:
    """Run the acquisition phase.

    Any error is reported once through ``context.set_failed`` and no outputs
    are published in that case.

    Args:
        context: Runner interfaces for this step
        settings: Process configuration (credentials directory, region)
        pools: Environment-to-pool table
        exchange: Identity exchange to use (defaults to the GitHub OIDC token source)

    Returns:
        True on success, False when a failure was reported
    """
    try:
        environment = context.inputs.get("environment") or DEFAULT_ENVIRONMENT
        pool = resolve_pool(environment, pools)

        if exchange is None:
            exchange = IdentityExchange(context.masker, GitHubOIDCTokenProvider())
        credentials = exchange.exchange(pool.pool_id, pool.account_id, settings.region)

        credentials_file = write_credentials_file(settings.credentials_file, credentials)
        logger.info("Credentials written", path=str(credentials_file))

        # Outputs reach later steps of this job via step-level env, not via the environment
        outputs = {
            "credentials-file": str(credentials_file),
            "AWS_ACCESS_KEY_ID": credentials.access_key_id,
            "AWS_SECRET_ACCESS_KEY": credentials.secret_access_key,
            "AWS_SESSION_TOKEN": credentials.session_token,
        }
        for name, value in outputs.items():
            context.outputs.set(name, value)

        logger.info("AWS credentials configured successfully", environment=environment)
        return True

    except Exception as e:
        context.set_failed(f"Credential setup failed: {e}")
        return False
