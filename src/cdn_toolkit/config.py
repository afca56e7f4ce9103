"""
Configuration dataclasses for the CDN toolkit.

This module defines all configuration structures used throughout the system,
including the endpoint directory, probing, origin targets, the CNAME
delegation check, the certificate API and logging, plus loading, saving and
validation of the JSON configuration file.
"""

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError
from .models import OriginTarget
from .targets import build_targets, validate_target


DEFAULT_DIRECTORY_URL = "https://api.datahorders.org/endpoints"
DEFAULT_CERTIFICATE_API_URL = "https://dashboard.datahorders.org/api/v1/certificates"
DEFAULT_EXPECTED_CNAME = "_acme-challenge.datahorders.org"
DEFAULT_CONFIG_PATH = Path.home() / ".cdn_toolkit" / "config.json"

# (check_url, expected_marker) pairs for the production origins
DEFAULT_ORIGIN_TARGETS = [
    (
        "https://emby.arkyncdn.net/system/info/public",
        "696b66ad21364cde900cb63b5c3b5881",
    ),
    (
        "https://emby2.arkyncdn.net/system/info/public",
        "8b4578d47c6348b18f0a0552e108e4a6",
    ),
]

# Environment variables (also read from a .env file)
ENV_API_KEY = "CDN_API_KEY"
ENV_CERTIFICATE_API_URL = "API_URL"
ENV_CERTIFICATE_API_TOKEN = "API_TOKEN"


@dataclass
class DirectoryConfig:
    """Endpoint inventory API configuration."""

    url: str = DEFAULT_DIRECTORY_URL
    api_key_header: str = "api_key"
    timeout_seconds: float = 15.0


@dataclass
class ProbeConfig:
    """Per-probe behaviour."""

    timeout_seconds: float = 15.0
    max_concurrency: int = 32  # 0 disables the bound
    verify_tls: bool = False


@dataclass
class CNAMEConfig:
    """ACME delegation check configuration."""

    expected_target: str = DEFAULT_EXPECTED_CNAME
    challenge_prefix: str = "_acme-challenge"
    nameservers: list[str] = field(default_factory=list)
    timeout_seconds: float = 10.0


@dataclass
class CertificateAPIConfig:
    """Certificate management API configuration."""

    url: str = DEFAULT_CERTIFICATE_API_URL
    token: Optional[str] = None
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "error"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ToolkitConfig:
    """Main configuration combining all sub-configurations."""

    targets: list[OriginTarget]
    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    cname: CNAMEConfig = field(default_factory=CNAMEConfig)
    certificate_api: CertificateAPIConfig = field(default_factory=CertificateAPIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def load_environment(dotenv_path: Optional[Path] = None) -> None:
    """Load variables from a .env file without overriding the environment."""
    load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True), override=False)


def resolve_api_key(cli_value: Optional[str]) -> str:
    """
    Resolve the directory API key from the CLI or the environment.

    Raises:
        ConfigError: If no non-empty key is available
    """
    api_key = (cli_value if cli_value is not None else os.getenv(ENV_API_KEY, "")).strip()
    if not api_key:
        raise ConfigError(
            code="missing_api_key",
            message="API key is required",
        )
    return api_key


def create_default_config() -> ToolkitConfig:
    """
    Create the default configuration.

    Certificate API URL and token honour the API_URL and API_TOKEN
    environment variables.

    Returns:
        ToolkitConfig with default settings
    """
    return ToolkitConfig(
        targets=build_targets(DEFAULT_ORIGIN_TARGETS),
        certificate_api=CertificateAPIConfig(
            url=os.getenv(ENV_CERTIFICATE_API_URL) or DEFAULT_CERTIFICATE_API_URL,
            token=os.getenv(ENV_CERTIFICATE_API_TOKEN) or None,
        ),
    )


def load_config_from_file(config_path: Path) -> Optional[ToolkitConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        ToolkitConfig if successful, None if the file does not exist

    Raises:
        ConfigError: If the file is malformed or contains invalid targets
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(
            code="invalid_config_file",
            message=f"Error loading config: {e}",
            details={"path": str(config_path)},
        ) from e

    defaults = create_default_config()

    try:
        targets_data = data.get("targets")
        if targets_data:
            targets = build_targets(
                (item["check_url"], item["expected_marker"]) for item in targets_data
            )
        else:
            targets = defaults.targets

        directory_data = data.get("directory", {})
        directory = DirectoryConfig(
            url=directory_data.get("url", DEFAULT_DIRECTORY_URL),
            api_key_header=directory_data.get("api_key_header", "api_key"),
            timeout_seconds=float(directory_data.get("timeout_seconds", 15.0)),
        )

        probe_data = data.get("probe", {})
        verify_tls = probe_data.get("verify_tls", False)
        if not isinstance(verify_tls, bool):
            raise TypeError(f"probe.verify_tls must be true or false, got {verify_tls!r}")
        probe = ProbeConfig(
            timeout_seconds=float(probe_data.get("timeout_seconds", 15.0)),
            max_concurrency=int(probe_data.get("max_concurrency", 32)),
            verify_tls=verify_tls,
        )

        cname_data = data.get("cname", {})
        cname = CNAMEConfig(
            expected_target=cname_data.get("expected_target", DEFAULT_EXPECTED_CNAME),
            challenge_prefix=cname_data.get("challenge_prefix", "_acme-challenge"),
            nameservers=list(cname_data.get("nameservers", [])),
            timeout_seconds=float(cname_data.get("timeout_seconds", 10.0)),
        )

        certificate_data = data.get("certificate_api", {})
        certificate_api = CertificateAPIConfig(
            url=certificate_data.get("url") or defaults.certificate_api.url,
            token=certificate_data.get("token") or defaults.certificate_api.token,
            timeout_seconds=float(certificate_data.get("timeout_seconds", 30.0)),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "error"),
            output_format=logging_data.get("output_format", "text"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigError(
            code="invalid_config_file",
            message=f"Error loading config: {e}",
            details={"path": str(config_path)},
        ) from e

    return ToolkitConfig(
        targets=targets,
        directory=directory,
        probe=probe,
        cname=cname,
        certificate_api=certificate_api,
        logging=logging_config,
    )


def save_config_to_file(config: ToolkitConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    The certificate API token is never written; it is read from API_TOKEN.

    Args:
        config: ToolkitConfig to save
        config_path: Path to save the configuration

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "targets": [
                {
                    "check_url": target.check_url,
                    "expected_marker": target.expected_marker,
                }
                for target in config.targets
            ],
            "directory": {
                "url": config.directory.url,
                "api_key_header": config.directory.api_key_header,
                "timeout_seconds": config.directory.timeout_seconds,
            },
            "probe": {
                "timeout_seconds": config.probe.timeout_seconds,
                "max_concurrency": config.probe.max_concurrency,
                "verify_tls": config.probe.verify_tls,
            },
            "cname": {
                "expected_target": config.cname.expected_target,
                "challenge_prefix": config.cname.challenge_prefix,
                "nameservers": config.cname.nameservers,
                "timeout_seconds": config.cname.timeout_seconds,
            },
            "certificate_api": {
                "url": config.certificate_api.url,
                "timeout_seconds": config.certificate_api.timeout_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def validate_config(config: ToolkitConfig) -> ConfigValidationResult:
    """
    Validate a configuration.

    Checks:
    - At least one origin target, each satisfying the target invariant
    - Directory and certificate API URLs use HTTPS
    - Timeouts are positive and the concurrency bound is not negative
    - Logging settings are recognised

    Returns:
        ConfigValidationResult with validation status
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not config.targets:
        errors.append("No origin targets configured")
    for target in config.targets:
        try:
            validate_target(target)
        except ConfigError as e:
            errors.append(e.message)

    for label, url in (
        ("Directory URL", config.directory.url),
        ("Certificate API URL", config.certificate_api.url),
    ):
        if urlparse(url).scheme.lower() != "https":
            errors.append(f"{label} must use HTTPS: {url}")

    if not config.directory.api_key_header:
        errors.append("Directory API key header is empty")

    for label, value in (
        ("directory.timeout_seconds", config.directory.timeout_seconds),
        ("probe.timeout_seconds", config.probe.timeout_seconds),
        ("cname.timeout_seconds", config.cname.timeout_seconds),
        ("certificate_api.timeout_seconds", config.certificate_api.timeout_seconds),
    ):
        if value <= 0:
            errors.append(f"{label} must be positive")

    if config.probe.max_concurrency < 0:
        errors.append("probe.max_concurrency must not be negative")
    elif config.probe.max_concurrency == 0:
        warnings.append("probe.max_concurrency is 0 - all probes run at once")

    if config.probe.timeout_seconds > 60:
        warnings.append("probe.timeout_seconds above 60s can stall the whole run")

    if not config.cname.expected_target:
        errors.append("cname.expected_target is empty")

    if config.logging.level not in ("debug", "info", "warn", "error"):
        errors.append(f"Unsupported log level: {config.logging.level}")
    if config.logging.output_format not in ("json", "text", "both"):
        errors.append(f"Unsupported log format: {config.logging.output_format}")

    return ConfigValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )
