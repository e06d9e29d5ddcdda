"""GitHub Actions runner interfaces.

The phases never touch the process environment directly. They talk to the
runner through small injected interfaces:

- ``Inputs``: read-only action inputs (``INPUT_<NAME>`` variables)
- ``KeyValueStore``: step outputs, run state and exported environment
- ``SecretMasker``: registers values that the runner must mask in logs
- ``ActionsContext``: bundles the above and carries warning/failure annotations

``ActionsContext.from_environ()`` wires the file-command implementations the
runner expects. ``ActionsContext.in_memory()`` wires dict-backed stores for
tests and local dry runs.
"""

import os
import sys
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, MutableMapping, Optional, TextIO

import structlog

from .errors import FileCommandError, MissingInputError

logger = structlog.get_logger(__name__)


def escape_data(value: str) -> str:
    """Escape a workflow command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a workflow command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue_command(stream: TextIO, command: str, message: str, properties: Optional[Dict[str, str]] = None) -> None:
    """Write a ``::command key=value::message`` line to the runner."""
    props = ""
    if properties:
        props = " " + ",".join(f"{key}={escape_property(value)}" for key, value in properties.items() if value)
    stream.write(f"::{command}{props}::{escape_data(message)}{os.linesep}")
    stream.flush()


class Inputs:
    """Action inputs as exposed by the runner.

    The runner passes ``with:`` values as ``INPUT_<NAME>`` environment variables,
    upper-cased, with spaces replaced by underscores. Dashes are kept.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    @staticmethod
    def variable_name(name: str) -> str:
        return f"INPUT_{name.replace(' ', '_').upper()}"

    def get(self, name: str, required: bool = False) -> str:
        """Return the trimmed input value, or "" when absent.

        Raises:
            MissingInputError: If ``required`` and the input is empty
        """
        value = self._environ.get(self.variable_name(name), "").strip()
        if required and not value:
            raise MissingInputError(name)
        return value


class KeyValueStore(ABC):
    """A runner-owned key/value channel (read-one, write-one)."""

    @abstractmethod
    def get(self, key: str) -> str:
        """Return the value for ``key``, or "" when unset."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def check_writable(self) -> None:
        """Raise if :meth:`set` cannot succeed. Always writable by default."""


class MemoryStore(KeyValueStore):
    """Dict-backed store, records every write in order."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self.values: Dict[str, str] = dict(values or {})
        self.writes: List[tuple[str, str]] = []

    def get(self, key: str) -> str:
        return self.values.get(key, "")

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes.append((key, value))


class FileCommandStore(KeyValueStore):
    """Store backed by a runner file command (GITHUB_OUTPUT, GITHUB_STATE, GITHUB_ENV).

    Writes are appended to the file named by ``file_variable`` in heredoc form.
    Reads come from the environment the runner prepared for this process,
    looked up as ``read_prefix + key``.

    Args:
        file_variable: Environment variable holding the command file path
        read_prefix: Prefix for reads (``STATE_`` for run state, "" for env)
        environ: Process environment (defaults to ``os.environ``)
        apply_to_environ: Also set written values in ``environ`` (used for GITHUB_ENV)
    """

    def __init__(
        self,
        file_variable: str,
        read_prefix: str = "",
        environ: Optional[MutableMapping[str, str]] = None,
        apply_to_environ: bool = False,
    ):
        self.file_variable = file_variable
        self.read_prefix = read_prefix
        self._environ = os.environ if environ is None else environ
        self.apply_to_environ = apply_to_environ

    def get(self, key: str) -> str:
        return self._environ.get(f"{self.read_prefix}{key}", "")

    def _command_file(self) -> str:
        path = self._environ.get(self.file_variable, "")
        if not path:
            raise FileCommandError(f"Unable to find environment variable for file command {self.file_variable}")
        if not os.path.exists(path):
            raise FileCommandError(f"Missing file at path: {path}")
        return path

    def check_writable(self) -> None:
        self._command_file()

    def set(self, key: str, value: str) -> None:
        entry = self.format_entry(key, value)
        with open(self._command_file(), "a", encoding="utf-8") as f:
            f.write(entry)

        # Only after the runner has the value, so a failed write leaves the process untouched
        if self.apply_to_environ:
            self._environ[key] = value

    @staticmethod
    def format_entry(key: str, value: str) -> str:
        """Render one ``key<<delimiter`` heredoc entry."""
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        if delimiter in key:
            raise FileCommandError(f"Unexpected input: name should not contain the delimiter {delimiter!r}")
        if delimiter in value:
            raise FileCommandError(f"Unexpected input: value should not contain the delimiter {delimiter!r}")
        return f"{key}<<{delimiter}{os.linesep}{value}{os.linesep}{delimiter}{os.linesep}"


class SecretMasker:
    """Registry of values that must never appear in logs.

    Each registered value is announced to the runner with ``::add-mask::``
    (when a stream is given) and is redacted by the structlog processor
    installed by :func:`cache_credentials.logging_config.configure_logging`.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self._secrets: List[str] = []

    def register(self, value: str) -> None:
        if not value or value in self._secrets:
            return
        self._secrets.append(value)
        if self.stream is not None:
            issue_command(self.stream, "add-mask", value)

    @property
    def secrets(self) -> List[str]:
        return list(self._secrets)

    def __contains__(self, value: str) -> bool:
        return value in self._secrets

    def redact(self, text: str) -> str:
        """Replace every registered value in ``text`` with ``***``."""
        # Longest first so a secret containing another is fully replaced
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, "***")
        return text


@dataclass
class ActionsContext:
    """Everything a phase needs from the runner."""

    inputs: Inputs
    outputs: KeyValueStore
    state: KeyValueStore
    env: KeyValueStore
    masker: SecretMasker
    stream: Optional[TextIO] = None
    warnings: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @classmethod
    def from_environ(
        cls, environ: Optional[MutableMapping[str, str]] = None, stream: Optional[TextIO] = None
    ) -> "ActionsContext":
        """Wire the file-command stores used inside a GitHub Actions step."""
        environ = os.environ if environ is None else environ
        stream = stream or sys.stdout
        return cls(
            inputs=Inputs(environ),
            outputs=FileCommandStore("GITHUB_OUTPUT", environ=environ),
            state=FileCommandStore("GITHUB_STATE", read_prefix="STATE_", environ=environ),
            env=FileCommandStore("GITHUB_ENV", environ=environ, apply_to_environ=True),
            masker=SecretMasker(stream),
            stream=stream,
        )

    @classmethod
    def in_memory(
        cls,
        inputs: Optional[Mapping[str, str]] = None,
        state: Optional[Mapping[str, str]] = None,
    ) -> "ActionsContext":
        """Dict-backed context, ``inputs`` keyed by input name (e.g. "credentials-file")."""
        return cls(
            inputs=Inputs({Inputs.variable_name(name): value for name, value in (inputs or {}).items()}),
            outputs=MemoryStore(),
            state=MemoryStore(state),
            env=MemoryStore(),
            masker=SecretMasker(),
        )

    def warning(self, message: str) -> None:
        """Report a non-fatal problem as a runner warning annotation."""
        message = self.masker.redact(message)
        self.warnings.append(message)
        if self.stream is not None:
            issue_command(self.stream, "warning", message)
        else:
            logger.warning(message)

    def set_failed(self, message: str) -> None:
        """Report a phase failure. The process should exit with :attr:`exit_code`."""
        message = self.masker.redact(message)
        self.failures.append(message)
        if self.stream is not None:
            issue_command(self.stream, "error", message)
        else:
            logger.error(message)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0
