"""
Health-check orchestrator.

Coordinates one health-check run:
1. Fetch the edge endpoints from the inventory API (fatal on failure)
2. Probe every (origin target x endpoint) pair concurrently
3. Fold the results into a ResultMatrix

Directory errors propagate to the caller before any probe is launched;
probe errors never do.
"""

import time
from dataclasses import dataclass
from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .config import ToolkitConfig
from .coordinator import ProbeCoordinator, ProbeRunner
from .directory_client import EndpointDirectoryClient
from .enums import LogLevel
from .models import Endpoint, OriginTarget, ProbeResult, ResultMatrix
from .probe import ProbeExecutor
from .renderer import build_matrix


@dataclass
class HealthCheckReport:
    """Everything produced by one health-check run."""

    targets: list[OriginTarget]
    endpoints: list[Endpoint]
    results: list[ProbeResult]
    matrix: ResultMatrix
    total_duration_ms: float


class HealthCheckOrchestrator:
    """
    Main orchestrator for the CDN health-check matrix.

    Owns the directory client and builds the coordinator around the
    probe executor for every run.
    """

    def __init__(
        self,
        config: ToolkitConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        executor: Optional[ProbeRunner] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Toolkit configuration
            logger: Optional audit logger
            transport: Optional httpx transport shared by directory and probes
            executor: Optional probe executor replacing the HTTPS one
        """
        self._config = config
        self._logger = logger
        self._directory_client = EndpointDirectoryClient(
            config.directory,
            logger=logger,
            transport=transport,
        )
        self._executor = executor or ProbeExecutor(
            config.probe,
            logger=logger,
            transport=transport,
        )

    async def __aenter__(self) -> "HealthCheckOrchestrator":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self._directory_client.close()

    async def run(self, api_key: str) -> HealthCheckReport:
        """
        Perform a complete health-check run.

        Args:
            api_key: Inventory API credential

        Returns:
            HealthCheckReport with the full result matrix

        Raises:
            DirectoryUnavailable: If the endpoint list cannot be fetched
            EmptyDirectory: If the endpoint list is empty
        """
        start_time = time.perf_counter()
        targets = list(self._config.targets)

        self._log_info(
            "Starting health check",
            {"targets": [target.domain for target in targets]},
        )

        endpoints = await self._directory_client.fetch_endpoints(api_key)

        coordinator = ProbeCoordinator(
            self._executor,
            max_concurrency=self._config.probe.max_concurrency,
            logger=self._logger,
        )
        results = await coordinator.run(targets, endpoints)
        matrix = build_matrix(results, targets, endpoints)

        total_duration_ms = (time.perf_counter() - start_time) * 1000
        self._log_info(
            "Health check completed",
            {
                "probes": len(results),
                "duration_ms": total_duration_ms,
            },
        )

        return HealthCheckReport(
            targets=targets,
            endpoints=endpoints,
            results=results,
            matrix=matrix,
            total_duration_ms=total_duration_ms,
        )

    def _log_info(self, message: str, data: dict) -> None:
        """Log an info message if logger is available."""
        if self._logger:
            self._logger.log(LogLevel.INFO, "HealthCheckOrchestrator", message, data)

    @property
    def config(self) -> ToolkitConfig:
        """Get the toolkit configuration."""
        return self._config
