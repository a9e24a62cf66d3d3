"""
Health check module for the session store service.

Provides liveness and readiness checks; readiness verifies the session
table is reachable.
"""

from health.service import (
    HealthCheckService,
    HealthStatus,
    DependencyHealth,
)

__all__ = [
    "HealthCheckService",
    "HealthStatus",
    "DependencyHealth",
]
