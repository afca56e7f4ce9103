"""
Structured stderr logging for the CDN toolkit.

Every component takes an optional AuditLogger. Entries carry a component
name and a data dict, are filtered by a minimum level and written as JSON
lines, as logfmt-style text lines, or both. Credentials and certificate
material are masked before anything is stored or written.
"""

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from cdn_toolkit.enums import LogLevel


LEVEL_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}

# Matched as substrings of the lowercased key
SENSITIVE_KEY_FRAGMENTS = frozenset({
    'api_key', 'apikey', 'token', 'authorization', 'auth',
    'secret', 'password', 'credential', 'private_key',
    'keycontent', 'key_content', 'certcontent', 'cert_content',
})

MASK_VALUE = "***MASKED***"

OUTPUT_FORMATS = ("json", "text", "both")


def is_sensitive_key(key: Any) -> bool:
    """True if a data key names a credential or key material."""
    key_lower = str(key).lower()
    return any(fragment in key_lower for fragment in SENSITIVE_KEY_FRAGMENTS)


def mask_value(value: Any) -> Any:
    """Return a copy of value with sensitive dict entries masked at any depth."""
    if isinstance(value, dict):
        return {
            key: MASK_VALUE if is_sensitive_key(key) else mask_value(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [mask_value(item) for item in value]
    return value


@dataclass
class LogEntry:
    """One structured log record."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)


class AuditLogger:
    """
    Structured logger used by every toolkit component.

    Entries below min_level are dropped before masking or formatting.
    Written entries are also kept in memory and exposed via `entries`.
    """

    SENSITIVE_KEYS = SENSITIVE_KEY_FRAGMENTS
    MASK_VALUE = MASK_VALUE

    def __init__(
        self,
        output_format: str = "both",
        output_stream: Optional[TextIO] = None,
        min_level: LogLevel = LogLevel.DEBUG,
    ):
        """
        Args:
            output_format: 'json', 'text' or 'both'
            output_stream: Destination stream (defaults to sys.stderr)
            min_level: Lowest level that is written
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._stream = output_stream or sys.stderr
        self._min_level = min_level
        self._entries: list[LogEntry] = []

    @classmethod
    def from_level_name(
        cls,
        level: str,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
    ) -> "AuditLogger":
        """Build a logger from a level name such as 'debug' or 'WARN'."""
        try:
            min_level = LogLevel(level.lower())
        except ValueError:
            raise ValueError(f"Invalid log level: {level}")
        return cls(output_format=output_format, output_stream=output_stream, min_level=min_level)

    @property
    def output_format(self) -> str:
        return self._output_format

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Copy of the entries written so far."""
        return list(self._entries)

    def clear_entries(self) -> None:
        self._entries.clear()

    def is_enabled_for(self, level: LogLevel) -> bool:
        return LEVEL_SEVERITY[level] >= LEVEL_SEVERITY[self._min_level]

    def mask_sensitive_data(self, data: dict) -> dict:
        """Masked copy of a data dict."""
        if not isinstance(data, dict):
            return data
        return mask_value(data)

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record and write one entry.

        Returns:
            The stored LogEntry, or None if the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )
        self._entries.append(entry)
        self._write(entry)
        return entry

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        response_status_code: Optional[int] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Write an ERROR entry with exception and request context.

        The exception contributes error_message and error_type; the URL and
        status code are added only when given.
        """
        data = dict(additional_data or {})
        if error is not None:
            data["error_message"] = str(error)
            data["error_type"] = type(error).__name__
        if request_url is not None:
            data["request_url"] = request_url
        if response_status_code is not None:
            data["response_status_code"] = response_status_code

        return self.log(LogLevel.ERROR, component, message, data)

    def _write(self, entry: LogEntry) -> None:
        lines = []
        if self._output_format in ("json", "both"):
            lines.append(self.format_json(entry))
        if self._output_format in ("text", "both"):
            lines.append(self.format_text(entry))
        self._stream.write("".join(line + "\n" for line in lines))
        self._stream.flush()

    @staticmethod
    def format_json(entry: LogEntry) -> str:
        return json.dumps(
            {
                "timestamp": entry.timestamp,
                "level": entry.level.value,
                "component": entry.component,
                "message": entry.message,
                "data": entry.data,
            },
            ensure_ascii=False,
            default=str,
        )

    @staticmethod
    def format_text(entry: LogEntry) -> str:
        """
        Format: TIMESTAMP LEVEL [component] message key=value ...

        String values without whitespace or quotes are written bare,
        everything else as JSON.
        """
        line = f"{entry.timestamp} {entry.level.value.upper()} [{entry.component}] {entry.message}"
        pairs = []
        for key, value in entry.data.items():
            if isinstance(value, str) and value and not any(c.isspace() or c == '"' for c in value):
                rendered = value
            else:
                rendered = json.dumps(value, ensure_ascii=False, default=str)
            pairs.append(f"{key}={rendered}")
        if pairs:
            line += " " + " ".join(pairs)
        return line
