"""Workflow OIDC token retrieval.

GitHub Actions exposes an OIDC token endpoint to jobs that have the
``id-token: write`` permission, via ACTIONS_ID_TOKEN_REQUEST_URL and
ACTIONS_ID_TOKEN_REQUEST_TOKEN.
"""

import os
from typing import Mapping, Optional

import requests
import structlog

from ..errors import IdentityTokenError

logger = structlog.get_logger(__name__)

REQUEST_TIMEOUT = (5, 30)


class GitHubOIDCTokenProvider:
    """Fetches workflow identity tokens for a given audience."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None, session: Optional[requests.Session] = None):
        self._environ = os.environ if environ is None else environ
        self._session = session or requests.Session()

    def __call__(self, audience: str) -> str:
        return self.get_id_token(audience)

    def get_id_token(self, audience: str) -> str:
        """Request an identity token scoped to ``audience``.

        Raises:
            IdentityTokenError: If the job cannot request tokens or the request fails
        """
        request_url = self._environ.get("ACTIONS_ID_TOKEN_REQUEST_URL", "")
        request_token = self._environ.get("ACTIONS_ID_TOKEN_REQUEST_TOKEN", "")
        if not request_url or not request_token:
            raise IdentityTokenError(
                "Unable to get ACTIONS_ID_TOKEN_REQUEST_URL or ACTIONS_ID_TOKEN_REQUEST_TOKEN env variable. "
                "Ensure the job has 'id-token: write' permission."
            )

        logger.debug("Requesting OIDC token", audience=audience)

        try:
            response = self._session.get(
                request_url,
                params={"audience": audience},
                headers={"Authorization": f"Bearer {request_token}", "Accept": "application/json"},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            token = response.json().get("value")
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise IdentityTokenError(f"Failed to get ID Token. Error Code: {status}") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise IdentityTokenError(f"Failed to get ID Token: {e}") from e

        if not token:
            raise IdentityTokenError("Response json body do not have ID Token field")

        return token
