"""
Health check service for the session store service.

This module provides the HealthCheckService class that reports liveness
and readiness. Readiness depends on the session table being reachable
within the configured timeout.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any

from session.store import SessionStore

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class DependencyHealth:
    """
    Health status of a single dependency.

    Attributes:
        name: The name of the dependency
        healthy: Whether the dependency is healthy and responding
        response_time_ms: The time taken to check the dependency in milliseconds
        error: Optional error message if the dependency check failed
    """
    name: str
    healthy: bool
    response_time_ms: float
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "name": self.name,
            "healthy": self.healthy,
            "response_time_ms": round(self.response_time_ms, 2),
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class HealthStatus:
    """
    Overall health status of the service.

    Attributes:
        status: "healthy" or "unhealthy"
        timestamp: When the health check was performed (ISO 8601, UTC)
        dependencies: Individual dependency health statuses
    """
    status: str
    timestamp: str
    dependencies: list[DependencyHealth] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class HealthCheckService:
    """
    Service for checking the health of the session store.

    Attributes:
        session_store: The session store to check
        check_timeout: Timeout in seconds for the readiness check
    """

    def __init__(self, session_store: SessionStore, check_timeout: float = 5.0):
        self.session_store = session_store
        self.check_timeout = check_timeout

    async def check_health(self) -> dict[str, Any]:
        """Basic health check - service is accepting requests."""
        return {"status": "ok", "timestamp": _utc_timestamp()}

    async def check_liveness(self) -> dict[str, Any]:
        """Liveness check - process is running. No dependency checks."""
        return {"status": "alive", "timestamp": _utc_timestamp()}

    async def check_readiness(self) -> HealthStatus:
        """
        Check that the session store is ready to serve requests.

        Returns:
            HealthStatus: "healthy" when the session store responds healthy
            within the timeout, "unhealthy" otherwise.
        """
        dependency = await self._check_session_store()
        status = "healthy" if dependency.healthy else "unhealthy"
        return HealthStatus(
            status=status,
            timestamp=_utc_timestamp(),
            dependencies=[dependency],
        )

    async def _check_session_store(self) -> DependencyHealth:
        start_time = time.perf_counter()

        try:
            healthy = await asyncio.wait_for(
                self.session_store.health_check(),
                timeout=self.check_timeout
            )
        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"Session store health check timed out after {self.check_timeout} seconds"
            logger.warning(error_msg)
            return DependencyHealth(
                name="session_store",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if healthy:
            logger.debug(f"Session store health check passed in {elapsed_ms:.2f}ms")
            return DependencyHealth(
                name="session_store",
                healthy=True,
                response_time_ms=elapsed_ms
            )

        logger.warning(f"Session store health check returned False after {elapsed_ms:.2f}ms")
        return DependencyHealth(
            name="session_store",
            healthy=False,
            response_time_ms=elapsed_ms,
            error="Session store health check returned False"
        )
