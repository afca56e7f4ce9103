"""
Concurrency Coordinator for the health-check matrix.

Fans out one probe per (origin target x endpoint) pair as asyncio tasks,
joins all of them, and returns exactly one ProbeResult per pair.

Guarantees:
- A probe that raises still yields a FAILURE result for its pair
- Results are only returned after every task has finished
- The number of results equals the number of launched probes and every
  pair appears exactly once; otherwise CoordinatorError is raised

There is no overall deadline; the worst case is bounded only by the
per-probe timeout of the executor.
"""

import asyncio
from collections import Counter
from typing import Optional, Protocol, runtime_checkable

from .audit_logger import AuditLogger
from .enums import LogLevel, ProbeErrorCode, ProbeStatus
from .exceptions import CoordinatorError, ProbeFailure
from .models import Endpoint, OriginTarget, ProbeResult


@runtime_checkable
class ProbeRunner(Protocol):
    """Anything that can probe a single pair."""

    async def probe(self, target: OriginTarget, endpoint: Endpoint) -> ProbeResult:
        """Probe one (origin target, endpoint) pair."""
        ...


class ProbeCoordinator:
    """
    Runs the full M x N probe set concurrently.

    Results travel back as task return values and are joined with
    asyncio.gather, so no result container is shared between tasks.
    """

    def __init__(
        self,
        executor: ProbeRunner,
        max_concurrency: int = 0,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            executor: Probe executor used for every pair
            max_concurrency: Maximum probes in flight (0 = unbounded)
            logger: Optional audit logger
        """
        if max_concurrency < 0:
            raise ValueError("max_concurrency must not be negative")
        self._executor = executor
        self._max_concurrency = max_concurrency
        self._logger = logger

    async def run(
        self,
        targets: list[OriginTarget],
        endpoints: list[Endpoint],
    ) -> list[ProbeResult]:
        """
        Probe every (target, endpoint) pair and wait for all of them.

        Args:
            targets: Origin targets (M)
            endpoints: Edge endpoints (N)

        Returns:
            M x N results in launch order (target order, then endpoint order)

        Raises:
            CoordinatorError: If the joined results do not match the launched pairs
        """
        pairs = [(target, endpoint) for target in targets for endpoint in endpoints]
        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        self._log(
            LogLevel.INFO,
            f"Launching {len(pairs)} probe(s)",
            {"targets": len(targets), "endpoints": len(endpoints)},
        )

        tasks = [
            asyncio.ensure_future(self._guarded_probe(target, endpoint, semaphore))
            for target, endpoint in pairs
        ]
        results = list(await asyncio.gather(*tasks)) if tasks else []

        self._verify_complete(pairs, results)

        failures = sum(1 for result in results if result.status == ProbeStatus.FAILURE)
        self._log(
            LogLevel.INFO,
            f"All {len(results)} probe(s) completed",
            {"success": len(results) - failures, "failure": failures},
        )
        return results

    async def _guarded_probe(
        self,
        target: OriginTarget,
        endpoint: Endpoint,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ProbeResult:
        """Run one probe, converting any escaping exception into FAILURE."""
        try:
            if semaphore is None:
                result = await self._executor.probe(target, endpoint)
            else:
                async with semaphore:
                    result = await self._executor.probe(target, endpoint)
            if result.key != (target.domain, endpoint.hostname):
                raise ProbeFailure(
                    code=ProbeErrorCode.UNEXPECTED.value,
                    message=(
                        f"Executor returned result for {result.key} "
                        f"instead of {(target.domain, endpoint.hostname)}"
                    ),
                )
            return result
        except Exception as e:
            failure = e if isinstance(e, ProbeFailure) else ProbeFailure(
                code=ProbeErrorCode.UNEXPECTED.value,
                message=f"Probe crashed: {type(e).__name__}: {e}",
            )
            if self._logger:
                self._logger.log_error(
                    "ProbeCoordinator",
                    "Probe raised instead of returning a result",
                    error=failure,
                    additional_data={
                        "domain": target.domain,
                        "hostname": endpoint.hostname,
                    },
                )
            return ProbeResult(
                domain=target.domain,
                hostname=endpoint.hostname,
                status=ProbeStatus.FAILURE,
                error=f"{failure.code}: {failure.message}",
            )

    def _verify_complete(
        self,
        pairs: list[tuple[OriginTarget, Endpoint]],
        results: list[ProbeResult],
    ) -> None:
        """Assert that launched and completed probes match one to one."""
        if len(results) != len(pairs):
            raise CoordinatorError(
                code="count_mismatch",
                message=f"Launched {len(pairs)} probe(s) but collected {len(results)}",
                details={"launched": len(pairs), "completed": len(results)},
            )

        expected = Counter((target.domain, endpoint.hostname) for target, endpoint in pairs)
        collected = Counter(result.key for result in results)
        if expected != collected:
            raise CoordinatorError(
                code="pair_mismatch",
                message="Collected results do not match the launched pairs",
                details={
                    "missing": sorted(map(list, (expected - collected).keys())),
                    "unexpected": sorted(map(list, (collected - expected).keys())),
                },
            )

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        """Log a message if logger is available."""
        if self._logger:
            self._logger.log(level, "ProbeCoordinator", message, data)
