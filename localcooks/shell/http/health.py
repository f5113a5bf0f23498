"""
Health endpoints.

Key behaviors:
- /health: overall status from every registered check
- /health/ready: readiness probe (store reachable)
- /health/live: liveness probe (process alive)

Check failures are logged; responses carry only a short status message.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# --- Types ---


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)


class HealthCheck(Protocol):
    """Protocol for health checks."""

    name: str

    def check(self) -> CheckResult:
        """Run the health check and return result."""
        ...


# --- Startup Tracker ---


class StartupTracker:
    """Tracks application startup time for uptime calculation."""

    _start_time: float | None = None

    @classmethod
    def mark_started(cls) -> None:
        cls._start_time = time.time()

    @classmethod
    def get_uptime_seconds(cls) -> float:
        if cls._start_time is None:
            return 0.0
        return time.time() - cls._start_time

    @classmethod
    def is_started(cls) -> bool:
        return cls._start_time is not None


# --- Health Check Registry ---


class HealthCheckRegistry:
    """Registry of health checks to run."""

    def __init__(self) -> None:
        self._checks: list[HealthCheck] = []

    def register(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def run_all(self) -> list[CheckResult]:
        return [check.check() for check in self._checks]

    def clear(self) -> None:
        self._checks = []


# --- Built-in Checks ---


class ProcessCheck:
    """Basic process liveness check."""

    name = "process"

    def check(self) -> CheckResult:
        return CheckResult(
            name=self.name,
            status=HealthStatus.HEALTHY,
            message="Process is running",
        )


class DatabaseCheck:
    """Store connectivity check."""

    name = "database"

    def __init__(self, check_fn: Callable[[], Any]) -> None:
        self._check_fn = check_fn

    def check(self) -> CheckResult:
        start = time.time()
        try:
            self._check_fn()
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return CheckResult(
                name=self.name,
                status=HealthStatus.UNHEALTHY,
                message="Database unavailable",
                latency_ms=(time.time() - start) * 1000,
            )
        return CheckResult(
            name=self.name,
            status=HealthStatus.HEALTHY,
            message="Database connected",
            latency_ms=(time.time() - start) * 1000,
        )


# --- FastAPI Router ---


def create_health_router(registry: HealthCheckRegistry, version: str = "0.0.0") -> APIRouter:
    """
    Create FastAPI router for health endpoints.

    Args:
        registry: Checks to run for /health and /health/ready
        version: Application version string

    Returns:
        FastAPI router with health endpoints
    """
    router = APIRouter(tags=["health"])

    @router.get(
        "/health",
        response_model=None,
        responses={
            200: {"description": "Service is healthy"},
            503: {"description": "Service is unhealthy"},
        },
    )
    def health_check() -> JSONResponse:
        results = registry.run_all()

        if all(r.status == HealthStatus.HEALTHY for r in results):
            overall = HealthStatus.HEALTHY
        elif any(r.status == HealthStatus.UNHEALTHY for r in results):
            overall = HealthStatus.UNHEALTHY
        else:
            overall = HealthStatus.DEGRADED

        response = {
            "status": overall.value,
            "version": version,
            "uptime_seconds": StartupTracker.get_uptime_seconds(),
            "checks": [
                {
                    "name": r.name,
                    "status": r.status.value,
                    "message": r.message,
                    "latency_ms": r.latency_ms,
                }
                for r in results
            ],
        }

        status_code = (
            status.HTTP_200_OK
            if overall == HealthStatus.HEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return JSONResponse(content=response, status_code=status_code)

    @router.get(
        "/health/ready",
        response_model=None,
        responses={
            200: {"description": "Service is ready to accept traffic"},
            503: {"description": "Service is not ready"},
        },
    )
    def readiness_check() -> JSONResponse:
        """All dependency checks must pass."""
        results = registry.run_all()
        is_ready = all(r.status == HealthStatus.HEALTHY for r in results)

        response = {
            "ready": is_ready,
            "checks": [
                {"name": r.name, "status": r.status.value, "message": r.message} for r in results
            ],
        }
        status_code = status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(content=response, status_code=status_code)

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        return JSONResponse(
            content={"alive": True, "uptime_seconds": StartupTracker.get_uptime_seconds()},
            status_code=status.HTTP_200_OK,
        )

    return router
