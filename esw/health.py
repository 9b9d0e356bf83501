from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

import httpx

HEALTH_URL_TEMPLATE = "http://{service}.{namespace}.svc.cluster.local/{app_root}/api/p/health"


class ProbeFailure(str, Enum):
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport-error"


@dataclass(frozen=True)
class ProbeResult:
    success: bool
    duration_ms: float
    status_code: int | None = None
    reason: ProbeFailure | None = None
    detail: str | None = None

    def summary(self) -> str:
        if self.success:
            return f"SUCCESS - {self.duration_ms:.0f}ms - Status: {self.status_code}"
        if self.reason is None:
            return f"FAILED - {self.duration_ms:.0f}ms - HTTP {self.status_code}"
        return f"FAILED - {self.duration_ms:.0f}ms - {self.detail}"


def health_url(service: str, namespace: str, app_root: str) -> str:
    app_root = app_root.strip("/")
    url = HEALTH_URL_TEMPLATE.format(service=service, namespace=namespace, app_root=app_root)
    return url if app_root else url.replace("//api/", "/api/")


class HealthProber:
    """Single-shot HTTP health check against the service's cluster DNS name."""

    def __init__(
        self,
        service: str,
        namespace: str,
        app_root: str,
        timeout_ms: int = 5000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = health_url(service, namespace, app_root)
        self.timeout_ms = int(timeout_ms)
        self._transport = transport

    def check(self) -> ProbeResult:
        """GET the health URL once. Never raises; failures come back as a ProbeResult.

        The whole exchange, body included, runs under one wall-clock deadline of
        timeout_ms; the request is cancelled when it expires.
        """
        start = time.monotonic()
        budget_s = self.timeout_ms / 1000.0
        try:
            status_code = asyncio.run(asyncio.wait_for(self._get(budget_s), budget_s))
            return ProbeResult(success=200 <= status_code < 300, duration_ms=_elapsed_ms(start), status_code=status_code)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return ProbeResult(
                success=False,
                duration_ms=_elapsed_ms(start),
                reason=ProbeFailure.TIMEOUT,
                detail=f"TIMEOUT after {self.timeout_ms}ms",
            )
        except Exception as e:
            return ProbeResult(
                success=False,
                duration_ms=_elapsed_ms(start),
                reason=ProbeFailure.TRANSPORT_ERROR,
                detail=f"{type(e).__name__}: {e}",
            )

    async def _get(self, budget_s: float) -> int:
        async with httpx.AsyncClient(timeout=budget_s, follow_redirects=False, transport=self._transport) as client:
            resp = await client.get(self.url)
        return resp.status_code


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000.0, 2)
