"""Telemetry module for tracking request performance with PostHog."""

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from posthog import Posthog

logger = logging.getLogger(__name__)

DISTINCT_ID = "catalog-reverse-lookup-service"


@dataclass
class StepResult:
    """Result of a tracked step."""

    duration_ms: float
    success: bool = True
    error_type: str | None = None


@dataclass
class RequestTelemetry:
    """Tracks performance metrics for a single catalog operation."""

    operation: str = "reverse_lookup"
    steps: dict[str, StepResult] = field(default_factory=dict)
    api_calls: dict[str, int] = field(default_factory=lambda: {"catalog": 0, "token": 0})
    start_time: float = field(default_factory=time.perf_counter)

    @contextmanager
    def track_step(self, step_name: str):
        """Context manager to time a step.

        Args:
            step_name: Name of the step being tracked
        """
        step_start = time.perf_counter()
        error_type = None

        try:
            yield
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            self.steps[step_name] = StepResult(
                duration_ms=(time.perf_counter() - step_start) * 1000,
                success=error_type is None,
                error_type=error_type,
            )

    def record_api_call(self, service: str) -> None:
        """Increment API call counter for a service ("catalog" or "token")."""
        if service in self.api_calls:
            self.api_calls[service] += 1
        else:
            logger.warning(f"Unknown service for API call tracking: {service}")

    def get_total_duration_ms(self) -> float:
        """Get total elapsed time since telemetry was created."""
        return (time.perf_counter() - self.start_time) * 1000

    def get_step_timings(self) -> dict[str, float]:
        """Get timing for each step in milliseconds."""
        return {f"{name}_ms": step.duration_ms for name, step in self.steps.items()}

    def send_to_posthog(
        self,
        posthog_client: Posthog,
        extra_properties: dict[str, Any] | None = None,
    ) -> None:
        """Send all telemetry events to PostHog.

        Args:
            posthog_client: PostHog client instance
            extra_properties: Additional properties to include in the completed event
        """
        extra_properties = extra_properties or {}

        for step_name, step_result in self.steps.items():
            posthog_client.capture(
                distinct_id=DISTINCT_ID,
                event=f"{self.operation}_{step_name}",
                properties={
                    "step": step_name,
                    "duration_ms": round(step_result.duration_ms, 2),
                    "success": step_result.success,
                    "error_type": step_result.error_type,
                },
            )

        posthog_client.capture(
            distinct_id=DISTINCT_ID,
            event=f"{self.operation}_completed",
            properties={
                "total_duration_ms": round(self.get_total_duration_ms(), 2),
                "steps": self.get_step_timings(),
                "api_calls": self.api_calls.copy(),
                "catalog": get_catalog_stats() or _empty_stats(),
                **extra_properties,
            },
        )

        logger.debug(
            f"Sent telemetry: {len(self.steps)} steps, total {self.get_total_duration_ms():.1f}ms"
        )


# ---------------------------------------------------------------------------
# Per-request catalog stats via ContextVar
# ---------------------------------------------------------------------------

_catalog_stats_var: ContextVar[dict | None] = ContextVar("catalog_stats", default=None)


def _empty_stats() -> dict:
    return {
        "token_cache_hits": 0,
        "token_refreshes": 0,
        "api_calls": 0,
        "api_time_ms": 0.0,
    }


def init_catalog_stats() -> None:
    """Initialize catalog stats for the current request context."""
    _catalog_stats_var.set(_empty_stats())


def record_token_cache_hit() -> None:
    """Record a credential served from the in-memory cache."""
    stats = _catalog_stats_var.get()
    if stats is not None:
        stats["token_cache_hits"] += 1


def record_token_refresh() -> None:
    """Record a credential fetched from the provider."""
    stats = _catalog_stats_var.get()
    if stats is not None:
        stats["token_refreshes"] += 1


def record_catalog_api_call() -> None:
    """Record a catalog API call in the current request context."""
    stats = _catalog_stats_var.get()
    if stats is not None:
        stats["api_calls"] += 1


def record_api_time(ms: float) -> None:
    """Accumulate catalog API round-trip time in the current request context."""
    stats = _catalog_stats_var.get()
    if stats is not None:
        stats["api_time_ms"] += ms


def get_catalog_stats() -> dict | None:
    """Get catalog stats for the current request context, or None if not initialized."""
    return _catalog_stats_var.get()
