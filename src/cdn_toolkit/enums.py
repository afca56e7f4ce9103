"""
Enumeration types for the CDN toolkit.

These enums provide type-safe constants for status codes, error codes,
and configuration options throughout the system.
"""

from enum import Enum


class ProbeStatus(Enum):
    """Outcome of a single probe, as shown in the result matrix."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class DirectoryErrorCode(Enum):
    """Error codes for endpoint directory operations."""

    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    EMPTY = "empty"


class ProbeErrorCode(Enum):
    """Error codes recorded on failed probes."""

    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    TIMEOUT = "timeout"
    MARKER_MISSING = "marker_missing"
    UNEXPECTED = "unexpected"


class CNAMEStatus(Enum):
    """Result of a CNAME delegation check."""

    MATCH = "match"
    MISMATCH = "mismatch"
    NO_RECORD = "no_record"


class UploadAction(Enum):
    """What a certificate upload ended up doing."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
