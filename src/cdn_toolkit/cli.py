"""
Command-line interface for the CDN toolkit.

This module provides the main CLI entry point with commands for:
- healthcheck: Probe every origin through every CDN edge endpoint
- check-cname: Verify the ACME challenge CNAME delegation of a domain
- upload-cert: Upload an acme.sh certificate to the management API
- config: Configuration management
"""

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import Optional

import httpx

from . import __version__
from .audit_logger import AuditLogger
from .cert_upload import CertificateUploader, load_certificate_bundle
from .cname_checker import CNAMEChecker
from .config import (
    DEFAULT_CONFIG_PATH,
    ToolkitConfig,
    create_default_config,
    load_config_from_file,
    load_environment,
    resolve_api_key,
    save_config_to_file,
    validate_config,
)
from .enums import CNAMEStatus, UploadAction
from .exceptions import ConfigError, DNSLookupError, ToolkitError
from .healthcheck import HealthCheckOrchestrator
from .renderer import render_json, render_table


def load_config(config_path: Optional[str]) -> ToolkitConfig:
    """
    Load the configuration file if one is given, else the defaults.

    Raises:
        ConfigError: If the given file does not exist or is invalid
    """
    if not config_path:
        return create_default_config()

    config = load_config_from_file(Path(config_path))
    if config is None:
        raise ConfigError(
            code="config_not_found",
            message=f"Could not load config from {config_path}",
        )
    return config


def create_logger(config: ToolkitConfig, verbose: bool) -> AuditLogger:
    """Create the stderr logger; --verbose lowers the level to debug."""
    return AuditLogger.from_level_name(
        "debug" if verbose else config.logging.level,
        output_format=config.logging.output_format,
    )


async def run_health_check(
    config: ToolkitConfig,
    api_key: str,
    output_format: str = "table",
    logger: Optional[AuditLogger] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Run one health check and print the result matrix.

    Args:
        config: Toolkit configuration
        api_key: Inventory API credential
        output_format: 'table' or 'json'
        logger: Optional audit logger
        transport: Optional httpx transport (used by tests)

    Returns:
        Exit code (0 when the matrix was produced, 1 on a fatal error)
    """
    try:
        async with HealthCheckOrchestrator(
            config=config,
            logger=logger,
            transport=transport,
        ) as orchestrator:
            report = await orchestrator.run(api_key)
    except ToolkitError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if output_format == "json":
        print(render_json(report.matrix, report.results))
    else:
        print(render_table(report.matrix), end="")
    return 0


def cmd_healthcheck(args: argparse.Namespace) -> int:
    """Handle the 'healthcheck' command."""
    try:
        api_key = resolve_api_key(args.apikey)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        args.command_parser.print_usage(sys.stderr)
        return 2

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    probe = config.probe
    if args.timeout is not None:
        probe = dataclasses.replace(probe, timeout_seconds=args.timeout)
    if args.max_concurrency is not None:
        probe = dataclasses.replace(probe, max_concurrency=args.max_concurrency)
    if args.verify_tls:
        probe = dataclasses.replace(probe, verify_tls=True)
    config = dataclasses.replace(config, probe=probe)

    validation = validate_config(config)
    if not validation.valid:
        for error in validation.errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    return asyncio.run(run_health_check(
        config=config,
        api_key=api_key,
        output_format=args.format,
        logger=create_logger(config, args.verbose),
    ))


def cmd_check_cname(args: argparse.Namespace) -> int:
    """Handle the 'check-cname' command."""
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    cname_config = config.cname
    if args.expected:
        cname_config = dataclasses.replace(cname_config, expected_target=args.expected)

    checker = CNAMEChecker(cname_config, logger=create_logger(config, args.verbose))

    try:
        result = asyncio.run(checker.check(args.domain))
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        args.command_parser.print_usage(sys.stderr)
        return 2
    except DNSLookupError as e:
        print(f"Error: DNS query failed: {e.message}", file=sys.stderr)
        return 1

    if result.status == CNAMEStatus.MATCH:
        print("Success: CNAME record is correctly set")
        return 0

    if result.status == CNAMEStatus.NO_RECORD:
        print(f"Error: No CNAME record found for {result.query_name}")
        return 1

    print("Error: CNAME record mismatch")
    print(f"Expected: {result.expected}")
    print(f"Got: {result.actual}")
    return 1


def cmd_upload_cert(args: argparse.Namespace) -> int:
    """Handle the 'upload-cert' command."""
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    api_config = config.certificate_api
    if args.url:
        api_config = dataclasses.replace(api_config, url=args.url)
    if args.token:
        api_config = dataclasses.replace(api_config, token=args.token)

    if not args.name:
        print("Error: --name is required", file=sys.stderr)
        args.command_parser.print_usage(sys.stderr)
        return 2

    try:
        bundle = load_certificate_bundle(Path(args.acme_dir).expanduser())
    except ToolkitError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Found certificate: {bundle.cert_path}")
    print(f"Found key: {bundle.key_path}")
    print("Detected domains:")
    for domain in bundle.domains:
        print(f"  - {domain}")

    if not api_config.token:
        print("Warning: No API token provided. Authentication may fail.", file=sys.stderr)

    uploader = CertificateUploader(api_config, logger=create_logger(config, args.verbose))

    try:
        result = asyncio.run(uploader.upload(bundle, args.name, force_update=args.force_update))
    except ToolkitError as e:
        print(f"Error: {e.message} (Code: {e.code})", file=sys.stderr)
        return 1

    if result.action == UploadAction.SKIPPED:
        print(f"Certificate already exists for domain: {bundle.domains[0]}")
        print("Use --force-update to update the existing certificate.")
        print("Existing certificate details:")
        print(json.dumps(result.response_data, indent=2, ensure_ascii=False))
        return 0

    if result.action == UploadAction.UPDATED:
        print("Certificate updated successfully!")
    else:
        print("Certificate uploaded successfully!")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        if save_config_to_file(create_default_config(), config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    try:
        config = load_config_from_file(config_path)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if config is None:
        print(f"No configuration found at: {config_path}")
        print("Use 'config init' to create a default configuration.")
        return 1

    if args.action == "show":
        print(f"Configuration from: {config_path}")
        print(f"  Directory URL: {config.directory.url}")
        print("  Origin targets:")
        for target in config.targets:
            print(f"    - {target.domain}: {target.check_url}")
        print(f"  Probe timeout: {config.probe.timeout_seconds}s")
        print(f"  Max concurrency: {config.probe.max_concurrency}")
        print(f"  Verify TLS: {config.probe.verify_tls}")
        print(f"  Expected CNAME: {config.cname.expected_target}")
        print(f"  Certificate API: {config.certificate_api.url}")
        print(f"  Log level: {config.logging.level}")
        return 0

    elif args.action == "validate":
        validation = validate_config(config)
        for warning in validation.warnings:
            print(f"Warning: {warning}")
        if not validation.valid:
            for error in validation.errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cdn-toolkit",
        description="Operational toolkit for CDN edge health, DNS delegation and certificates",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'healthcheck' command
    healthcheck_parser = subparsers.add_parser(
        "healthcheck",
        help="Probe every origin through every CDN edge endpoint",
    )
    healthcheck_parser.add_argument(
        "--apikey",
        help="API key for accessing the CDN endpoints (default: CDN_API_KEY env var)",
    )
    healthcheck_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    healthcheck_parser.add_argument(
        "--timeout",
        type=float,
        help="Per-probe timeout in seconds",
    )
    healthcheck_parser.add_argument(
        "--max-concurrency",
        type=int,
        help="Maximum probes in flight (0 = unbounded)",
    )
    healthcheck_parser.add_argument(
        "--verify-tls",
        action="store_true",
        help="Validate edge certificates against the origin domain",
    )
    healthcheck_parser.set_defaults(func=cmd_healthcheck, command_parser=healthcheck_parser)

    # 'check-cname' command
    cname_parser = subparsers.add_parser(
        "check-cname",
        help="Verify the ACME challenge CNAME delegation of a domain",
    )
    cname_parser.add_argument(
        "--domain",
        required=True,
        help="Base domain (e.g., example.org)",
    )
    cname_parser.add_argument(
        "--expected",
        help="Expected CNAME target (default from configuration)",
    )
    cname_parser.set_defaults(func=cmd_check_cname, command_parser=cname_parser)

    # 'upload-cert' command
    upload_parser = subparsers.add_parser(
        "upload-cert",
        help="Upload an acme.sh certificate to the management API",
    )
    upload_parser.add_argument(
        "--name",
        required=True,
        help="Certificate name",
    )
    upload_parser.add_argument(
        "--acme-dir",
        required=True,
        help="Path to acme.sh certificate directory",
    )
    upload_parser.add_argument(
        "--url",
        help="API URL (default: API_URL env var or built-in URL)",
    )
    upload_parser.add_argument(
        "--token",
        help="API token (default: API_TOKEN env var)",
    )
    upload_parser.add_argument(
        "--force-update",
        action="store_true",
        help="Force update if certificate already exists",
    )
    upload_parser.set_defaults(func=cmd_upload_cert, command_parser=upload_parser)

    for command_parser in (healthcheck_parser, cname_parser, upload_parser):
        command_parser.add_argument(
            "--config", "-c",
            help="Path to configuration file",
        )
        command_parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Write debug-level structured logs to stderr",
        )

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config, command_parser=config_parser)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    load_environment()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
