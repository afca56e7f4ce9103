"""
Probe Executor for the health-check matrix.

A probe fetches an origin target's check URL through one specific edge
endpoint: the TCP connection goes to the endpoint IP while the Host header
and TLS SNI carry the origin domain (the equivalent of curl --resolve).

Classification:
- SUCCESS: the request completes and the body contains the expected marker
- FAILURE: anything else (connection, TLS, timeout, wrong content, ...)

The probe never raises; every error becomes a FAILURE result.
"""

import asyncio
import time
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .config import ProbeConfig
from .enums import LogLevel, ProbeErrorCode, ProbeStatus
from .models import Endpoint, OriginTarget, ProbeResult


def pinned_request_parts(
    target: OriginTarget, endpoint: Endpoint
) -> tuple[httpx.URL, dict[str, str], dict[str, str]]:
    """
    Build the URL, headers and extensions of a request pinned to an endpoint.

    Returns:
        (url with the endpoint IP as host, headers, request extensions)
    """
    origin_url = httpx.URL(target.check_url)
    # httpx expects IPv6 literals in bracketed form
    host = f"[{endpoint.ip}]" if ":" in endpoint.ip else endpoint.ip
    pinned_url = origin_url.copy_with(host=host)
    headers = {"Host": origin_url.netloc.decode("ascii")}
    extensions = {"sni_hostname": target.domain}
    return pinned_url, headers, extensions


class ProbeExecutor:
    """
    Executes single pinned HTTPS probes.

    Each probe uses its own client so a pooled connection opened with one
    SNI name is never reused for another origin.
    """

    def __init__(
        self,
        config: ProbeConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the probe executor.

        Args:
            config: Probe configuration (timeout, TLS verification)
            logger: Optional audit logger
            transport: Optional httpx transport (used by tests)
        """
        self._config = config
        self._logger = logger
        self._transport = transport

    async def probe(self, target: OriginTarget, endpoint: Endpoint) -> ProbeResult:
        """
        Probe one (origin target, endpoint) pair.

        Args:
            target: Origin target to fetch
            endpoint: Edge endpoint whose IP the connection is pinned to

        Returns:
            ProbeResult with SUCCESS or FAILURE
        """
        start_time = time.perf_counter()
        timeout = self._config.timeout_seconds

        try:
            url, headers, extensions = pinned_request_parts(target, endpoint)
            response = await asyncio.wait_for(
                self._fetch(url, headers, extensions),
                timeout=timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return self._failure(
                target, endpoint, start_time,
                ProbeErrorCode.TIMEOUT,
                f"Probe timed out after {timeout}s",
            )
        except httpx.ConnectError as e:
            error_msg = str(e)
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                return self._failure(
                    target, endpoint, start_time,
                    ProbeErrorCode.TLS_ERROR,
                    f"TLS connection error: {error_msg}",
                )
            return self._failure(
                target, endpoint, start_time,
                ProbeErrorCode.NETWORK_ERROR,
                f"Connection error: {error_msg}",
            )
        except httpx.HTTPError as e:
            return self._failure(
                target, endpoint, start_time,
                ProbeErrorCode.NETWORK_ERROR,
                f"Transport error: {type(e).__name__}: {e}",
            )
        except Exception as e:
            return self._failure(
                target, endpoint, start_time,
                ProbeErrorCode.UNEXPECTED,
                f"Unexpected error: {type(e).__name__}: {e}",
            )

        if target.expected_marker not in response.text:
            return self._failure(
                target, endpoint, start_time,
                ProbeErrorCode.MARKER_MISSING,
                f"Expected marker not found in response body (HTTP {response.status_code})",
                http_status_code=response.status_code,
            )

        result = ProbeResult(
            domain=target.domain,
            hostname=endpoint.hostname,
            status=ProbeStatus.SUCCESS,
            http_status_code=response.status_code,
            response_time_ms=self._elapsed_ms(start_time),
        )
        self._log(LogLevel.DEBUG, "Probe succeeded", result)
        return result

    async def _fetch(
        self,
        url: httpx.URL,
        headers: dict[str, str],
        extensions: dict[str, str],
    ) -> httpx.Response:
        """Perform the GET and read the full body."""
        async with httpx.AsyncClient(
            verify=self._config.verify_tls,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=False,
            transport=self._transport,
        ) as client:
            request = client.build_request(
                "GET",
                url,
                headers=headers,
                extensions=extensions,
            )
            return await client.send(request)

    def _failure(
        self,
        target: OriginTarget,
        endpoint: Endpoint,
        start_time: float,
        code: ProbeErrorCode,
        message: str,
        http_status_code: Optional[int] = None,
    ) -> ProbeResult:
        result = ProbeResult(
            domain=target.domain,
            hostname=endpoint.hostname,
            status=ProbeStatus.FAILURE,
            error=f"{code.value}: {message}",
            http_status_code=http_status_code,
            response_time_ms=self._elapsed_ms(start_time),
        )
        self._log(LogLevel.WARN, "Probe failed", result)
        return result

    def _elapsed_ms(self, start_time: float) -> float:
        """Calculate elapsed time in milliseconds."""
        return (time.perf_counter() - start_time) * 1000

    def _log(self, level: LogLevel, message: str, result: ProbeResult) -> None:
        """Log a probe outcome if logger is available."""
        if self._logger:
            self._logger.log(
                level,
                "ProbeExecutor",
                message,
                {
                    "domain": result.domain,
                    "hostname": result.hostname,
                    "status": result.status.value,
                    "error": result.error,
                    "http_status_code": result.http_status_code,
                    "response_time_ms": result.response_time_ms,
                },
            )
