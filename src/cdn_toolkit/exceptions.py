"""
Exception classes for the CDN toolkit.

All exceptions inherit from ToolkitError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class ToolkitError(Exception):
    """Base exception for all CDN toolkit errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(ToolkitError):
    """Raised when CLI input or configuration is missing or invalid."""

    pass


class DirectoryError(ToolkitError):
    """Base class for fatal endpoint directory errors."""

    pass


class DirectoryUnavailable(DirectoryError):
    """Raised when the endpoint directory cannot be fetched or parsed."""

    pass


class EmptyDirectory(DirectoryError):
    """Raised when the endpoint directory returns no usable endpoints."""

    pass


class ProbeFailure(ToolkitError):
    """Raised inside a single probe; always converted to a FAILURE result."""

    pass


class CoordinatorError(ToolkitError):
    """Raised when launched and completed probe counts diverge."""

    pass


class DNSLookupError(ToolkitError):
    """Raised when a DNS query fails for reasons other than a missing record."""

    pass


class CertificateError(ToolkitError):
    """Raised when certificate material cannot be located or parsed."""

    pass


class UploadError(ToolkitError):
    """Raised when the management API rejects a certificate upload."""

    pass
