"""FastAPI application entrypoint and health reporting utilities.

Invariants:
- Health detail is only exposed to allowlisted hosts.
"""

import ipaddress
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from catalog_api.api.router import api_router
from catalog_api.core.config import settings
from catalog_api.providers.observability import provider_monitor

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def _configure_logging() -> None:
    """Apply the configured log level on startup."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


def _summarize_providers(snapshot: dict[str, Any]) -> dict[str, Any]:
    """Condense provider monitor state into health-friendly telemetry.

    Implementation notes:
    - Repeated failures and a failing last call are degraded signals.
    - Cancelled calls are reported but never counted as failures.
    """
    issues: list[dict[str, Any]] = []
    sources: dict[str, Any] = {}
    for source, payload in snapshot.items():
        operations = payload.get("operations", {})
        state = "ok"
        failure_total = 0
        repeated_failure: dict[str, Any] | None = None
        last_error: str | None = None
        for operation, metrics in operations.items():
            last_error = metrics.get("last_error")
            if last_error:
                issues.append(
                    {
                        "source": source,
                        "operation": operation,
                        "reason": "last_error",
                        "error": last_error,
                        "status": metrics.get("last_status"),
                    }
                )
                state = "degraded"
            failed_count = int(metrics.get("failed") or 0)
            failure_total += failed_count
            if failed_count >= 3:
                repeated_failure = {"operation": operation, "failed": failed_count}
        if repeated_failure:
            issues.append(
                {
                    "source": source,
                    "reason": "repeated_failures",
                    "operation": repeated_failure["operation"],
                    "failed": repeated_failure["failed"],
                }
            )
            state = "degraded"
        sources[source] = {
            "state": state,
            "operations": operations,
            "failure_total": failure_total,
            "last_error": last_error,
            "repeated_failure": repeated_failure,
        }
    return {"sources": sources, "issues": issues}


def _entry_matches(entry: str, candidate: str) -> bool:
    """Return True if an allowlist entry matches a candidate host/IP."""
    try:
        network = ipaddress.ip_network(entry, strict=False)
        return ipaddress.ip_address(candidate) in network
    except ValueError:
        return entry.casefold() == candidate.casefold()


def _ip_or_host_allowlisted(request: Request) -> bool:
    """Check request client/host headers against the health allowlist."""
    if not settings.health_allowlist:
        return False
    client_candidates: list[str] = []
    if request.client and request.client.host:
        client_candidates.append(request.client.host)
    host_header = request.headers.get("host")
    if host_header:
        client_candidates.append(host_header.split(":")[0])
    for candidate in client_candidates:
        for entry in settings.health_allowlist:
            if entry and _entry_matches(entry, candidate):
                return True
    return False


@app.get("/health", tags=["internal"])
@app.get(f"{settings.api_prefix}/health", tags=["internal"])
async def health(request: Request) -> dict[str, Any]:
    """Return health status and optionally include provider telemetry."""
    if not _ip_or_host_allowlisted(request):
        return {"status": "ok"}

    snapshot = await provider_monitor.snapshot()
    telemetry = _summarize_providers(snapshot)
    status = "ok" if not telemetry["issues"] else "degraded"
    return {"status": status, "providers": telemetry}
