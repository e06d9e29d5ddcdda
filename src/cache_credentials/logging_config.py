"""structlog setup shared by every phase entry point."""

import logging
import sys
from typing import Any, Optional

import structlog

from .config import Settings
from .runner import SecretMasker


class RedactSecrets:
    """structlog processor that masks registered secrets in every string value.

    The runner masks ``::add-mask::`` values in its own log view. This processor
    keeps secrets out of log lines even when that masking is not in effect,
    e.g. when the JSON output is shipped somewhere else.
    """

    def __init__(self, masker: SecretMasker):
        self.masker = masker

    def _redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.masker.redact(value)
        if isinstance(value, dict):
            return {key: self._redact(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self._redact(item) for item in value)
        return value

    def __call__(self, logger, method_name: str, event_dict: dict) -> dict:
        if not self.masker.secrets:
            return event_dict
        return {key: self._redact(value) for key, value in event_dict.items()}


def configure_logging(settings: Settings, masker: Optional[SecretMasker] = None) -> None:
    """Configure stdlib logging and structlog for one phase process.

    Console output is used on the runner (it renders in the step log),
    JSON output when ``LOG_FORMAT=json``.
    """
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        # Unknown names come back as "Level X"
        level = logging.INFO
    logging.basicConfig(level=level, stream=sys.stdout, format="%(message)s", force=True)

    # botocore is chatty at DEBUG and echoes request parameters, including Logins
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if masker is not None:
        processors.append(RedactSecrets(masker))
    processors.append(
        structlog.processors.JSONRenderer() if settings.json_logs else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
