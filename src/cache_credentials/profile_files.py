"""Fallback AWS shared config files.

Some tools started by the cache action reset their environment and only
consult ``~/.aws/credentials`` and ``~/.aws/config``. The restore phase
mirrors the exported credentials into the ``[default]`` profile of both files.
"""

import os
import tempfile
from configparser import ConfigParser
from configparser import Error as ConfigParserError
from pathlib import Path
from typing import Dict, Union

import structlog

from .models import CredentialSet

logger = structlog.get_logger(__name__)

PROFILE = "default"


def _write_ini(path: Path, section: Dict[str, str]) -> None:
    """Replace the ``[default]`` section of an INI file atomically, keeping other sections."""
    # Disable interpolation and inline comments so secrets with % or ; survive
    config = ConfigParser(interpolation=None, inline_comment_prefixes=())
    if path.exists():
        try:
            config.read(path, encoding="utf-8")
        except ConfigParserError as e:
            logger.warning("Existing AWS profile file is not valid INI, replacing it", path=str(path), error=str(e))
            config = ConfigParser(interpolation=None, inline_comment_prefixes=())

    config.remove_section(PROFILE)
    config.read_dict({PROFILE: section})

    temp_fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            config.write(f)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, 0o600)
        os.replace(temp_path, path)
    except Exception:
        os.unlink(temp_path)
        raise


def write_profile_files(aws_dir: Union[str, Path], credentials: CredentialSet, region: str) -> Path:
    """Write ``credentials`` and ``config`` into ``aws_dir``.

    The directory is created (or tightened) to mode 0700, both files to 0600.

    Args:
        aws_dir: Target directory, usually ``~/.aws``
        credentials: Complete credential set
        region: Region for the ``config`` file

    Returns:
        The directory written to

    Raises:
        ValueError: If the credential set is incomplete
        OSError: If the files cannot be written
    """
    if not credentials.is_complete():
        raise ValueError("Refusing to write incomplete credentials to AWS profile files")

    aws_dir = Path(aws_dir)
    aws_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    os.chmod(aws_dir, 0o700)

    _write_ini(
        aws_dir / "credentials",
        {
            "aws_access_key_id": credentials.access_key_id,
            "aws_secret_access_key": credentials.secret_access_key,
            "aws_session_token": credentials.session_token,
        },
    )
    _write_ini(aws_dir / "config", {"region": region})

    logger.debug("AWS profile files written", aws_dir=str(aws_dir), profile=PROFILE)
    return aws_dir
