"""Credential guard: keeps credentials available for the cache post step.

Environment exported by earlier steps does not survive into the post step
of a composite action. The guard's main step records where the credentials
file lives. Its post step re-exports the credentials right before the cache
is saved.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from .config import Settings
from .models import CredentialSet, read_credentials_file
from .profile_files import write_profile_files
from .runner import ActionsContext

logger = structlog.get_logger(__name__)

STATE_KEY = "credentials-file"


def setup(context: ActionsContext) -> bool:
    """Record the credentials file path in run state.

    Returns:
        True on success, False when a failure was reported
    """
    try:
        credentials_file = context.inputs.get("credentials-file", required=True)
        context.state.set(STATE_KEY, credentials_file)
        logger.info("Credential guard registered", file=credentials_file)
        logger.info("Credentials will be restored in post-step before cache save")
        return True
    except Exception as e:
        context.set_failed(f"Credential guard setup failed: {e}")
        return False


class RestoreStatus(Enum):
    """Outcome of a restore attempt."""

    RESTORED = "restored"
    NO_STATE = "no_state"
    FAILED = "failed"
    INCOMPLETE = "incomplete"


@dataclass
class RestoreResult:
    """Result of :func:`restore`.

    Attributes:
        status: What happened
        message: Warning text for any status other than RESTORED
        fallback_error: Why the profile files could not be written, if they could not
    """

    status: RestoreStatus
    message: str = ""
    fallback_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is RestoreStatus.RESTORED


def restore(context: ActionsContext, settings: Settings) -> RestoreResult:
    """Re-export persisted credentials into the job environment.

    Never raises: every problem is returned as a non-RESTORED result.
    """
    credentials_file = context.state.get(STATE_KEY)
    if not credentials_file:
        return RestoreResult(
            RestoreStatus.NO_STATE, "No credentials file path in state, skipping credential restore"
        )

    try:
        credentials = read_credentials_file(credentials_file)
    except Exception as e:
        return RestoreResult(RestoreStatus.FAILED, f"Failed to restore credentials: {e}")

    # Mask again, masks registered by the acquisition step may not apply to this one
    for value in credentials.secret_values():
        context.masker.register(value)

    if not credentials.is_complete():
        return RestoreResult(RestoreStatus.INCOMPLETE, "Credentials file is missing required fields, skipping")

    try:
        export_credentials(context, credentials, settings.region)
    except Exception as e:
        return RestoreResult(RestoreStatus.FAILED, f"Failed to restore credentials: {e}")

    fallback_error = None
    try:
        aws_dir = write_profile_files(settings.aws_dir, credentials, settings.region)
        logger.info("Fallback AWS profile written", aws_dir=str(aws_dir), profile="default")
    except Exception as e:
        fallback_error = str(e)

    return RestoreResult(RestoreStatus.RESTORED, fallback_error=fallback_error)


def export_credentials(context: ActionsContext, credentials: CredentialSet, region: str) -> None:
    """Export credentials and force environment-based credential resolution."""
    # All or nothing: never leave a partial credential set in the environment
    context.env.check_writable()
    context.env.set("AWS_ACCESS_KEY_ID", credentials.access_key_id)
    context.env.set("AWS_SECRET_ACCESS_KEY", credentials.secret_access_key)
    context.env.set("AWS_SESSION_TOKEN", credentials.session_token)
    context.env.set("AWS_REGION", region)
    context.env.set("AWS_DEFAULT_REGION", region)
    # Post step: no user step runs after this, so profiles can be cleared safely
    context.env.set("AWS_PROFILE", "")
    context.env.set("AWS_DEFAULT_PROFILE", "")


def run_restore(context: ActionsContext, settings: Settings) -> RestoreResult:
    """Restore and report the result as warnings. Always succeeds."""
    result = restore(context, settings)
    if not result.ok:
        context.warning(result.message)
        return result

    if result.fallback_error:
        context.warning(f"Failed to write fallback AWS profile files: {result.fallback_error}")
    logger.info("Cache credentials restored for post-step cache save")
    return result
