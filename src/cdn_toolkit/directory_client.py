"""
Endpoint Directory Client.

This module provides an async client for the CDN inventory API, returning
the current list of edge endpoints (hostname + IP) in response order.

Failure modes are fatal to a health-check run:
- transport errors, timeouts, non-2xx responses and malformed payloads
  raise DirectoryUnavailable
- a payload with no usable endpoint raises EmptyDirectory
"""

import time
from typing import Any, Optional

import httpx

from .audit_logger import AuditLogger
from .config import DirectoryConfig
from .enums import DirectoryErrorCode, LogLevel
from .exceptions import DirectoryUnavailable, EmptyDirectory
from .models import Endpoint


class EndpointDirectoryClient:
    """
    Async client for the endpoint inventory API.

    One authenticated GET per call; no caching, no retry.
    """

    def __init__(
        self,
        config: DirectoryConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the directory client.

        Args:
            config: Directory API configuration
            logger: Optional audit logger
            transport: Optional httpx transport (used by tests)
        """
        self._config = config
        self._logger = logger
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "EndpointDirectoryClient":
        """Async context manager entry."""
        self._client = self._create_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=True,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            follow_redirects=False,
            transport=self._transport,
        )

    async def fetch_endpoints(self, api_key: str) -> list[Endpoint]:
        """
        Fetch the current list of edge endpoints.

        Args:
            api_key: Inventory API credential

        Returns:
            Endpoints in the order returned by the API

        Raises:
            DirectoryUnavailable: If the request fails or the payload is malformed
            EmptyDirectory: If no usable endpoint is returned
        """
        if self._client is None:
            self._client = self._create_client()

        url = self._config.url
        start_time = time.perf_counter()

        try:
            response = await self._client.get(
                url,
                headers={
                    self._config.api_key_header: api_key,
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            raise DirectoryUnavailable(
                code=DirectoryErrorCode.TIMEOUT.value,
                message=(
                    f"Failed to fetch CDN endpoints: request timed out after "
                    f"{self._config.timeout_seconds}s"
                ),
                details={"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise DirectoryUnavailable(
                code=DirectoryErrorCode.NETWORK_ERROR.value,
                message=f"Failed to fetch CDN endpoints: {e}",
                details={"url": url, "error_type": type(e).__name__},
            ) from e

        response_time_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            self._log(
                LogLevel.WARN,
                "Directory request rejected",
                {"url": url, "status_code": response.status_code},
            )
            raise DirectoryUnavailable(
                code=DirectoryErrorCode.HTTP_ERROR.value,
                message=f"Failed to fetch CDN endpoints: HTTP {response.status_code}",
                details={"url": url, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DirectoryUnavailable(
                code=DirectoryErrorCode.PARSE_ERROR.value,
                message=f"Failed to parse CDN endpoints response: {e}",
                details={"url": url},
            ) from e

        endpoints = self.parse_endpoints(payload)

        self._log(
            LogLevel.INFO,
            f"Fetched {len(endpoints)} endpoint(s)",
            {
                "url": url,
                "endpoints": [endpoint.hostname for endpoint in endpoints],
                "response_time_ms": response_time_ms,
            },
        )
        return endpoints

    def parse_endpoints(self, payload: Any) -> list[Endpoint]:
        """
        Parse the inventory payload into endpoints.

        Accepts {"endpoints": [...]} or a bare list of {"hostname", "ip"}
        objects. Entries missing either field, and repeated hostnames,
        are skipped.

        Raises:
            DirectoryUnavailable: If the payload has the wrong shape
            EmptyDirectory: If no usable entry remains
        """
        if isinstance(payload, dict):
            raw_entries = payload.get("endpoints")
        else:
            raw_entries = payload

        if not isinstance(raw_entries, list):
            raise DirectoryUnavailable(
                code=DirectoryErrorCode.PARSE_ERROR.value,
                message="CDN endpoints response does not contain an endpoints array",
                details={"payload_type": type(payload).__name__},
            )

        endpoints: list[Endpoint] = []
        seen: set[str] = set()
        for index, entry in enumerate(raw_entries):
            if not isinstance(entry, dict):
                self._log(LogLevel.WARN, "Skipping non-object endpoint entry", {"index": index})
                continue

            hostname = str(entry.get("hostname") or "").strip()
            ip = str(entry.get("ip") or "").strip()
            if not hostname or not ip:
                self._log(
                    LogLevel.WARN,
                    "Skipping endpoint entry without hostname or ip",
                    {"index": index, "hostname": hostname, "ip": ip},
                )
                continue

            if hostname.lower() in seen:
                self._log(
                    LogLevel.WARN,
                    "Skipping duplicate endpoint hostname",
                    {"index": index, "hostname": hostname, "ip": ip},
                )
                continue

            seen.add(hostname.lower())
            endpoints.append(Endpoint(hostname=hostname, ip=ip))

        if not endpoints:
            raise EmptyDirectory(
                code=DirectoryErrorCode.EMPTY.value,
                message="No endpoints found in API response",
                details={"entries": len(raw_entries)},
            )

        return endpoints

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        """Log a message if logger is available."""
        if self._logger:
            self._logger.log(level, "EndpointDirectoryClient", message, data)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
