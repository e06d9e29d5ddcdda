"""AWS authentication for workflow runs.

This module provides the OIDC token source and the Cognito identity pool exchange.
"""

from .identity_exchange import AUDIENCE, IDENTITY_PROVIDER, IdentityExchange
from .oidc import GitHubOIDCTokenProvider

__all__ = ["AUDIENCE", "IDENTITY_PROVIDER", "GitHubOIDCTokenProvider", "IdentityExchange"]
