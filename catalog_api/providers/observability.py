"""Per-source metrics tracking for catalog provider calls."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, DefaultDict, TypeVar

from catalog_api.core.errors import CatalogError
from catalog_api.utils.redaction import redact_secrets

logger = logging.getLogger("catalog_api.providers")

T = TypeVar("T")


@dataclass
class OperationMetrics:
    """Aggregated counters for a source operation."""
    started: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    last_latency_ms: float | None = None
    last_error: str | None = None
    last_status: int | None = None


class ProviderMonitor:
    """Track provider call outcomes and emit structured logs."""

    def __init__(self) -> None:
        self._metrics: DefaultDict[str, DefaultDict[str, OperationMetrics]] = defaultdict(
            lambda: defaultdict(OperationMetrics)
        )
        self._lock = asyncio.Lock()

    async def track(
        self,
        source: str,
        operation: str,
        func: Callable[[], Awaitable[T]],
        *,
        context: dict[str, Any] | None = None,
    ) -> T:
        """Execute a provider call while tracking metrics.

        Implementation notes:
        - Failures are logged with their status class and re-raised unchanged.
        - Cancellation is counted separately and never logged as a failure.
        """
        context = context or {}
        async with self._lock:
            self._metrics[source][operation].started += 1

        start = time.monotonic()
        try:
            result = await func()
        except asyncio.CancelledError:
            async with self._lock:
                self._metrics[source][operation].cancelled += 1
            logger.debug("%s %s cancelled by caller", source, operation)
            raise
        except Exception as exc:  # noqa: BLE001
            latency_ms = (time.monotonic() - start) * 1000
            status = exc.status_code if isinstance(exc, CatalogError) else None
            error = redact_secrets(str(exc))
            async with self._lock:
                metrics = self._metrics[source][operation]
                metrics.failed += 1
                metrics.last_latency_ms = latency_ms
                metrics.last_error = error
                metrics.last_status = status
            payload = {
                "event": "provider_failure",
                "source": source,
                "operation": operation,
                "error": error,
                "status": status,
                "latency_ms": round(latency_ms, 2),
                "context": context,
            }
            logger.warning(json.dumps(payload, default=str))
            raise

        latency_ms = (time.monotonic() - start) * 1000
        async with self._lock:
            metrics = self._metrics[source][operation]
            metrics.succeeded += 1
            metrics.last_latency_ms = latency_ms
            metrics.last_error = None
            metrics.last_status = None
        payload = {
            "event": "provider_success",
            "source": source,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "context": context,
        }
        logger.info(json.dumps(payload, default=str))
        return result

    async def snapshot(self) -> dict[str, Any]:
        """Return a snapshot of all tracked source metrics."""
        async with self._lock:
            return {
                source: {
                    "operations": {
                        name: {
                            "started": metrics.started,
                            "succeeded": metrics.succeeded,
                            "failed": metrics.failed,
                            "cancelled": metrics.cancelled,
                            "last_latency_ms": metrics.last_latency_ms,
                            "last_error": metrics.last_error,
                            "last_status": metrics.last_status,
                        }
                        for name, metrics in operations.items()
                    }
                }
                for source, operations in self._metrics.items()
            }

    def reset(self) -> None:
        """Drop all recorded metrics."""
        self._metrics.clear()


provider_monitor = ProviderMonitor()
