import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import UnknownEnvironmentError

AWS_REGION = "eu-central-1"
DEFAULT_ENVIRONMENT = "prod"
CREDENTIALS_FILENAME = "credentials.json"


@dataclass(frozen=True)
class PoolSelector:
    """Cognito identity pool and owning account for one deployment environment."""

    pool_id: str
    account_id: str


DEFAULT_POOLS: Mapping[str, PoolSelector] = MappingProxyType(
    {
        "prod": PoolSelector(
            pool_id="eu-central-1:511fe374-ae4f-46d0-adb7-9246e570c7f4",
            account_id="275878209202",
        ),
        "dev": PoolSelector(
            pool_id="eu-central-1:3221c6ea-3f67-4fd8-a7ff-7426f96add89",
            account_id="460386131003",
        ),
    }
)


def resolve_pool(environment: str, pools: Mapping[str, PoolSelector] = DEFAULT_POOLS) -> PoolSelector:
    """Look up the identity pool for an environment name.

    Args:
        environment: Environment name from the ``environment`` input
        pools: Environment-to-pool table

    Returns:
        PoolSelector for the environment

    Raises:
        UnknownEnvironmentError: If the name is not in the table
    """
    selector = pools.get(environment)
    if selector is None:
        choices = " or ".join(f"'{name}'" for name in pools)
        raise UnknownEnvironmentError(f"Unknown environment: {environment}. Use {choices}.")
    return selector


@dataclass
class Settings:
    """Process configuration for one phase invocation.

    Values come from the runner-provided environment:
        - GITHUB_RUN_ID: Workflow run id, isolates concurrent runs (default: unknown)
        - CACHE_CREDENTIALS_DIR: Override for the per-run credentials directory
        - CACHE_CREDENTIALS_AWS_DIR: Override for the fallback profile directory (default: ~/.aws)
        - LOG_LEVEL: Logging level (default: INFO)
        - RUNNER_DEBUG: Set to 1 by the runner when step debug logging is enabled
        - LOG_FORMAT: "json" for JSON log lines, console output otherwise
    """

    run_id: str = ""
    credentials_dir: Path = field(default_factory=Path)
    aws_dir: Path = field(default_factory=Path)
    region: str = AWS_REGION
    log_level: str = ""
    json_logs: bool = False
    environ: Optional[Mapping[str, str]] = None

    def __post_init__(self):
        env = os.environ if self.environ is None else self.environ

        self.run_id = self.run_id or env.get("GITHUB_RUN_ID") or "unknown"

        credentials_dir = env.get("CACHE_CREDENTIALS_DIR", "")
        if credentials_dir:
            self.credentials_dir = Path(credentials_dir)
        elif self.credentials_dir == Path():
            self.credentials_dir = Path(tempfile.gettempdir()) / f".gh-action-cache-{self.run_id}"

        aws_dir = env.get("CACHE_CREDENTIALS_AWS_DIR", "")
        if aws_dir:
            self.aws_dir = Path(aws_dir)
        elif self.aws_dir == Path():
            self.aws_dir = Path.home() / ".aws"

        self.log_level = (self.log_level or env.get("LOG_LEVEL") or "INFO").upper()
        if env.get("RUNNER_DEBUG") == "1":
            self.log_level = "DEBUG"

        self.json_logs = self.json_logs or env.get("LOG_FORMAT", "").lower() == "json"

    @property
    def credentials_file(self) -> Path:
        """Absolute path of the persisted credential file for this run."""
        return (self.credentials_dir / CREDENTIALS_FILENAME).absolute()
