"""Credential set model and its persisted JSON form.

The persisted file uses the PascalCase field names of the AWS credential
process format (AccessKeyId, SecretAccessKey, SessionToken, Expiration).
Those names are a wire contract with other tooling and must not change.
In memory the fields are snake_case.
"""

import json
import os
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field

SECRET_FIELDS = ("access_key_id", "secret_access_key", "session_token")


class CredentialSet(BaseModel):
    """Temporary AWS credentials obtained from the Cognito identity pool."""

    access_key_id: str = Field("", alias="AccessKeyId", description="AWS access key id")
    secret_access_key: str = Field("", alias="SecretAccessKey", description="AWS secret access key")
    session_token: str = Field("", alias="SessionToken", description="AWS session token")
    expiration: str = Field("", alias="Expiration", description="ISO-8601 expiry, empty when unknown")

    class Config:
        populate_by_name = True
        extra = "ignore"
        frozen = True

    def is_complete(self) -> bool:
        """True when key id, secret key and session token are all non-empty."""
        return all(getattr(self, name) for name in SECRET_FIELDS)

    def secret_values(self) -> list[str]:
        """Non-empty secret field values, in declaration order."""
        return [value for value in (getattr(self, name) for name in SECRET_FIELDS) if value]

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))

    @classmethod
    def from_json(cls, content: str) -> "CredentialSet":
        """Parse the persisted JSON object.

        Raises:
            ValueError: If the content is not a JSON object of string fields
        """
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        # Explicit nulls are treated like missing fields
        return cls.model_validate({key: value for key, value in data.items() if value is not None})


def write_credentials_file(path: Union[str, Path], credentials: CredentialSet) -> Path:
    """Write credentials to ``path`` with owner-only permissions.

    The parent directory is created with mode 0700 and the file with mode 0600.
    Both modes are enforced with chmod so the process umask cannot widen them.

    Returns:
        Absolute path of the written file
    """
    path = Path(path).absolute()
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    os.chmod(path.parent, 0o700)

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(credentials.to_json())
    os.chmod(path, 0o600)

    return path


def read_credentials_file(path: Union[str, Path]) -> CredentialSet:
    """Read a credential file written by :func:`write_credentials_file`.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not valid credential JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        return CredentialSet.from_json(f.read())
