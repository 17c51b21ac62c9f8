"""Log sanitization helpers.

PlayFab payloads carry session tickets, passwords and developer secret keys.
Anything that reaches a log handler goes through ``sanitize_text`` first.
"""

import logging
import re
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEYS = (
    "SessionTicket",
    "Password",
    "X-SecretKey",
    "X-Authorization",
    "IdentityToken",
    "AccessToken",
    "ServerAuthCode",
    "secret_key",
    "session_ticket",
    "password",
)

_KEY_VALUE_PATTERN = re.compile(
    r"(?P<key>['\"]?(?:%s)['\"]?\s*[:=]\s*)(?P<quote>['\"]?)(?P<value>[^'\",}\s]+)"
    % "|".join(re.escape(key) for key in _SENSITIVE_KEYS),
    re.IGNORECASE,
)


def sanitize_text(text: str) -> str:
    """Replace values of sensitive keys in ``text`` with a placeholder."""
    return _KEY_VALUE_PATTERN.sub(
        lambda m: f"{m.group('key')}{m.group('quote')}{REDACTED}", text
    )


def _sanitize_arg(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, dict):
        return {
            k: REDACTED if k in _SENSITIVE_KEYS else _sanitize_arg(v)
            for k, v in value.items()
        }
    return value


class SanitizingFormatter(logging.Formatter):
    """Formatter that scrubs credentials from the rendered message.

    Mapping args are redacted by key before interpolation, then the whole
    message is scrubbed. The record is modified in place (its args are
    consumed), so callers that need the original record should hand in a
    copy.
    """

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.args, tuple):
            record.args = tuple(_sanitize_arg(arg) for arg in record.args)
        elif isinstance(record.args, dict):
            record.args = _sanitize_arg(record.args)
        record.msg = sanitize_text(record.getMessage())
        record.args = ()
        return super().format(record)
