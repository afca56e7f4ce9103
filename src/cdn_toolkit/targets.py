"""
Origin target construction and normalization.

Origin targets are defined by their check URL; the domain is derived from
the URL host and normalized to its canonical form (lowercase, IDNA), so the
invariant "check_url is HTTPS and its host equals domain" holds for every
OriginTarget built here.
"""

import re
from typing import Iterable
from urllib.parse import urlparse

import idna

from .exceptions import ConfigError
from .models import OriginTarget


# Control characters, whitespace and symbols that never appear in a hostname
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'
    r'\s'
    r'!@#$%^&*()+=\[\]{}|\\:;"\'<>,?/`~]'
)


def normalize_domain(domain: str) -> str:
    """
    Convert a domain to canonical form (lowercase, IDNA-encoded).

    Args:
        domain: Domain string to normalize

    Returns:
        Canonical form of the domain

    Raises:
        ConfigError: If the domain is empty, contains forbidden characters
                     or cannot be IDNA-encoded
    """
    if not domain or not domain.strip():
        raise ConfigError(
            code="empty_domain",
            message="Domain is empty",
            details={"domain": domain},
        )

    domain_lower = domain.strip().lower().rstrip(".")

    if FORBIDDEN_CHARS_PATTERN.search(domain_lower):
        raise ConfigError(
            code="forbidden_chars",
            message=f"Domain contains forbidden characters: {domain!r}",
            details={
                "domain": domain,
                "forbidden_chars": FORBIDDEN_CHARS_PATTERN.findall(domain_lower),
            },
        )

    if any(ord(c) > 127 for c in domain_lower):
        try:
            return idna.encode(domain_lower, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ConfigError(
                code="idna_error",
                message=f"IDNA encoding failed: {e}",
                details={"domain": domain, "idna_error": str(e)},
            ) from e

    return domain_lower


def build_target(check_url: str, expected_marker: str) -> OriginTarget:
    """
    Build an OriginTarget from its check URL and expected content marker.

    Args:
        check_url: HTTPS URL served by the CDN origin
        expected_marker: Substring the response body must contain

    Returns:
        OriginTarget with the domain derived from the URL host

    Raises:
        ConfigError: If the URL is not HTTPS, has no host, or the marker is empty
    """
    parsed = urlparse(check_url or "")
    if parsed.scheme.lower() != "https":
        raise ConfigError(
            code="invalid_check_url",
            message=f"Check URL must use HTTPS: {check_url}",
            details={"check_url": check_url, "scheme": parsed.scheme},
        )
    if not parsed.hostname:
        raise ConfigError(
            code="invalid_check_url",
            message=f"Check URL has no host: {check_url}",
            details={"check_url": check_url},
        )
    if not expected_marker:
        raise ConfigError(
            code="empty_marker",
            message=f"Expected marker is empty for {check_url}",
            details={"check_url": check_url},
        )

    return OriginTarget(
        domain=normalize_domain(parsed.hostname),
        check_url=check_url,
        expected_marker=expected_marker,
    )


def validate_target(target: OriginTarget) -> None:
    """
    Check the OriginTarget invariant.

    Raises:
        ConfigError: If check_url is not HTTPS or its host differs from domain
    """
    rebuilt = build_target(target.check_url, target.expected_marker)
    if rebuilt.domain != target.domain:
        raise ConfigError(
            code="domain_mismatch",
            message=(
                f"Check URL host {rebuilt.domain!r} does not match "
                f"domain {target.domain!r}"
            ),
            details={"check_url": target.check_url, "domain": target.domain},
        )


def build_targets(pairs: Iterable[tuple[str, str]]) -> list[OriginTarget]:
    """
    Build targets from (check_url, expected_marker) pairs.

    Raises:
        ConfigError: On the first invalid pair or a duplicated domain
    """
    targets: list[OriginTarget] = []
    seen: set[str] = set()
    for check_url, expected_marker in pairs:
        target = build_target(check_url, expected_marker)
        if target.domain in seen:
            raise ConfigError(
                code="duplicate_domain",
                message=f"Origin domain configured twice: {target.domain}",
                details={"domain": target.domain},
            )
        seen.add(target.domain)
        targets.append(target)
    return targets
