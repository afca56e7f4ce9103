"""
ACME delegation (CNAME) checker.

Certificates for customer domains are issued through DNS-01 challenges
delegated to the CDN: '_acme-challenge.<domain>' must be a CNAME to the
CDN's own challenge name. This module verifies that delegation with a
single DNS query.

Comparison ignores case, quotes and dots, so a trailing root dot (or
its absence) never causes a mismatch.
"""

from dataclasses import dataclass
from typing import Any, Optional

import dns.asyncresolver
import dns.exception
import dns.resolver

from .audit_logger import AuditLogger
from .config import CNAMEConfig
from .enums import CNAMEStatus, LogLevel
from .exceptions import ConfigError, DNSLookupError
from .targets import normalize_domain


def comparable_name(name: str) -> str:
    """Reduce a DNS name to the form used for comparison."""
    return name.replace('"', "").replace(".", "").strip().lower()


@dataclass
class CNAMECheckResult:
    """Outcome of a CNAME delegation check."""

    domain: str  # Base domain as given
    query_name: str  # '_acme-challenge.<domain>'
    status: CNAMEStatus
    expected: str
    actual: Optional[str] = None

    @property
    def success(self) -> bool:
        """True if the delegation is correctly set."""
        return self.status == CNAMEStatus.MATCH


class CNAMEChecker:
    """Checks the ACME challenge CNAME of a domain."""

    def __init__(
        self,
        config: CNAMEConfig,
        logger: Optional[AuditLogger] = None,
        resolver: Optional[Any] = None,
    ) -> None:
        """
        Initialize the checker.

        Args:
            config: CNAME check configuration
            logger: Optional audit logger
            resolver: Optional resolver with an async resolve(name, rdtype)
                      method (defaults to dnspython's async resolver)
        """
        self._config = config
        self._logger = logger
        self._resolver = resolver or self._create_resolver()

    def _create_resolver(self) -> dns.asyncresolver.Resolver:
        resolver = dns.asyncresolver.Resolver()
        resolver.lifetime = self._config.timeout_seconds
        if self._config.nameservers:
            resolver.nameservers = list(self._config.nameservers)
        return resolver

    def query_name(self, domain: str) -> str:
        """Name whose CNAME is checked for a base domain."""
        return f"{self._config.challenge_prefix}.{domain}"

    async def check(self, domain: str) -> CNAMECheckResult:
        """
        Check the delegation CNAME of a domain.

        Args:
            domain: Base domain (e.g., 'example.org')

        Returns:
            CNAMECheckResult with MATCH, MISMATCH or NO_RECORD

        Raises:
            ConfigError: If the domain is empty or invalid
            DNSLookupError: If the query fails (timeout, no nameservers, ...)
        """
        if not domain or not domain.strip():
            raise ConfigError(code="missing_domain", message="--domain parameter is required")

        base_domain = normalize_domain(domain)
        query_name = self.query_name(base_domain)
        expected = self._config.expected_target

        try:
            answer = await self._resolver.resolve(query_name, "CNAME")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            self._log(LogLevel.INFO, "No CNAME record found", {"query_name": query_name})
            return CNAMECheckResult(
                domain=base_domain,
                query_name=query_name,
                status=CNAMEStatus.NO_RECORD,
                expected=expected,
            )
        except dns.exception.DNSException as e:
            raise DNSLookupError(
                code="dns_query_failed",
                message=f"DNS query failed for {query_name}: {e}",
                details={"query_name": query_name, "error_type": type(e).__name__},
            ) from e

        records = [rdata.target.to_text() for rdata in answer]
        if not records:
            return CNAMECheckResult(
                domain=base_domain,
                query_name=query_name,
                status=CNAMEStatus.NO_RECORD,
                expected=expected,
            )

        actual = records[0]
        status = (
            CNAMEStatus.MATCH
            if comparable_name(actual) == comparable_name(expected)
            else CNAMEStatus.MISMATCH
        )

        self._log(
            LogLevel.INFO,
            f"CNAME check {status.value}",
            {"query_name": query_name, "expected": expected, "actual": actual},
        )

        return CNAMECheckResult(
            domain=base_domain,
            query_name=query_name,
            status=status,
            expected=expected,
            actual=actual,
        )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        """Log a message if logger is available."""
        if self._logger:
            self._logger.log(level, "CNAMEChecker", message, data)
