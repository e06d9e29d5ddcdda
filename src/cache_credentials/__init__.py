"""Workload-identity credential hand-off for GitHub Actions cache steps.

Three independent process invocations share one credential set:

- ``acquire``: exchange the workflow's OIDC token for temporary AWS credentials
  and persist them to a restricted file.
- ``guard-setup``: record the file path in run state.
- ``guard-restore``: re-export the credentials right before the cache is saved.
"""

from .version import __version__

__all__ = ["__version__"]
