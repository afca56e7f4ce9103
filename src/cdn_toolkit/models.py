"""
Data models for the CDN toolkit.

This module defines the data structures used by the health-check matrix:
origin targets, edge endpoints, probe results and the aggregated matrix.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .enums import ProbeStatus


# Edge hostnames follow the 'cdn-<code>.<suffix>' naming convention,
# e.g. 'cdn-mia-01.datahorders.org' -> 'mia-01'.
LOCATION_CODE_PATTERN = re.compile(r"^cdn-(?P<code>[^.]+)", re.IGNORECASE)


def location_code(hostname: str) -> str:
    """
    Derive the short location code used as a matrix column label.

    Args:
        hostname: Endpoint hostname (e.g., 'cdn-fra-02.example.net')

    Returns:
        The captured code, or the hostname unchanged if it does not
        follow the naming convention
    """
    match = LOCATION_CODE_PATTERN.match(hostname)
    if match is None:
        return hostname
    return match.group("code")


@dataclass(frozen=True)
class OriginTarget:
    """A CDN origin deployment whose content identity is verified."""

    domain: str  # Canonical host of check_url
    check_url: str  # HTTPS URL fetched through each endpoint
    expected_marker: str  # Substring the body must contain


@dataclass(frozen=True)
class Endpoint:
    """One CDN edge node from the inventory API."""

    hostname: str
    ip: str

    @property
    def location_code(self) -> str:
        """Short column label derived from the hostname."""
        return location_code(self.hostname)


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing one (origin target, endpoint) pair."""

    domain: str
    hostname: str
    status: ProbeStatus
    error: Optional[str] = None  # Diagnostic only, never shown in the grid
    http_status_code: Optional[int] = None
    response_time_ms: float = 0.0

    @property
    def key(self) -> tuple[str, str]:
        """The (domain, hostname) pair this result belongs to."""
        return (self.domain, self.hostname)


@dataclass
class ResultMatrix:
    """
    Aggregated success/failure grid.

    Rows are origin domains sorted lexicographically; columns are endpoints
    in directory order. Cells are keyed by endpoint hostname so endpoints
    sharing a location code never overwrite each other.
    """

    domains: list[str]
    endpoints: list[Endpoint]
    cells: dict[str, dict[str, ProbeStatus]] = field(default_factory=dict)

    def status(self, domain: str, hostname: str) -> ProbeStatus:
        """Status for a pair; a missing pair counts as FAILURE."""
        return self.cells.get(domain, {}).get(hostname, ProbeStatus.FAILURE)

    @property
    def column_labels(self) -> list[str]:
        """Location codes in column order."""
        return [endpoint.location_code for endpoint in self.endpoints]
