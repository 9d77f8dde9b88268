"""Shared logging configuration helpers for the auth API process."""

from __future__ import annotations

import logging
import re

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_JWT_PATTERN = re.compile(r"eyJ[\w-]*\.[\w-]+\.[\w-]+")
_BCRYPT_PATTERN = re.compile(r"\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}")
_REDACTED = "[redacted]"


class SensitiveValueFilter(logging.Filter):
    """Mask signed tokens and password hashes that reach a log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BCRYPT_PATTERN.sub(_REDACTED, _JWT_PATTERN.sub(_REDACTED, message))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(*, level: str) -> int:
    """Configure process logging with consistent format, runtime level and redaction."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)

    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(item, SensitiveValueFilter) for item in handler.filters):
            handler.addFilter(SensitiveValueFilter())
    return resolved_level
