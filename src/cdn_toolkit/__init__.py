"""
CDN Toolkit - Operational tooling for a content-delivery network.

This package verifies that every CDN edge node serves the expected content
when accessed directly by IP, validates the DNS delegation used for
certificate issuance, and uploads TLS certificate material to the
management API.
"""

__version__ = "0.1.0"
__author__ = "CDN Toolkit Team"

from cdn_toolkit.exceptions import (
    ToolkitError,
    ConfigError,
    DirectoryError,
    DirectoryUnavailable,
    EmptyDirectory,
    ProbeFailure,
    CoordinatorError,
    DNSLookupError,
    CertificateError,
    UploadError,
)
from cdn_toolkit.enums import (
    ProbeStatus,
    LogLevel,
    DirectoryErrorCode,
    ProbeErrorCode,
    CNAMEStatus,
    UploadAction,
)
from cdn_toolkit.models import (
    OriginTarget,
    Endpoint,
    ProbeResult,
    ResultMatrix,
    location_code,
)
from cdn_toolkit.targets import (
    normalize_domain,
    build_target,
    build_targets,
    validate_target,
)
from cdn_toolkit.config import (
    DirectoryConfig,
    ProbeConfig,
    CNAMEConfig,
    CertificateAPIConfig,
    LoggingConfig,
    ToolkitConfig,
    ConfigValidationResult,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
    validate_config,
)
from cdn_toolkit.audit_logger import (
    AuditLogger,
    LogEntry,
)
from cdn_toolkit.directory_client import (
    EndpointDirectoryClient,
)
from cdn_toolkit.probe import (
    ProbeExecutor,
    pinned_request_parts,
)
from cdn_toolkit.coordinator import (
    ProbeCoordinator,
    ProbeRunner,
)
from cdn_toolkit.renderer import (
    build_matrix,
    render_table,
    render_json,
)
from cdn_toolkit.healthcheck import (
    HealthCheckOrchestrator,
    HealthCheckReport,
)
from cdn_toolkit.cname_checker import (
    CNAMEChecker,
    CNAMECheckResult,
)
from cdn_toolkit.cert_upload import (
    CertificateBundle,
    CertificateUploader,
    UploadResult,
    extract_domains,
    find_certificate_files,
    load_certificate_bundle,
)
from cdn_toolkit.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "ToolkitError",
    "ConfigError",
    "DirectoryError",
    "DirectoryUnavailable",
    "EmptyDirectory",
    "ProbeFailure",
    "CoordinatorError",
    "DNSLookupError",
    "CertificateError",
    "UploadError",
    # Enums
    "ProbeStatus",
    "LogLevel",
    "DirectoryErrorCode",
    "ProbeErrorCode",
    "CNAMEStatus",
    "UploadAction",
    # Models
    "OriginTarget",
    "Endpoint",
    "ProbeResult",
    "ResultMatrix",
    "location_code",
    # Targets
    "normalize_domain",
    "build_target",
    "build_targets",
    "validate_target",
    # Configuration
    "DirectoryConfig",
    "ProbeConfig",
    "CNAMEConfig",
    "CertificateAPIConfig",
    "LoggingConfig",
    "ToolkitConfig",
    "ConfigValidationResult",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
    "validate_config",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Directory Client
    "EndpointDirectoryClient",
    # Probe Executor
    "ProbeExecutor",
    "pinned_request_parts",
    # Coordinator
    "ProbeCoordinator",
    "ProbeRunner",
    # Renderer
    "build_matrix",
    "render_table",
    "render_json",
    # Health Check
    "HealthCheckOrchestrator",
    "HealthCheckReport",
    # CNAME Checker
    "CNAMEChecker",
    "CNAMECheckResult",
    # Certificate Upload
    "CertificateBundle",
    "CertificateUploader",
    "UploadResult",
    "extract_domains",
    "find_certificate_files",
    "load_certificate_bundle",
    # CLI
    "cli_main",
    "create_parser",
]
