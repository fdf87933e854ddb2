"""Probe and metrics endpoints for DRIP.

- ``/health`` answers 200 while the event loop is alive.
- ``/ready`` runs every registered :class:`HealthCheck` concurrently, each
  bounded by a timeout, and answers 503 if any of them fails.
- ``/metrics`` exposes the default Prometheus registry.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from aiohttp import web
from prometheus_client import REGISTRY, generate_latest

from drip.chain.client import LedgerClient
from drip.errors import NetworkError

if TYPE_CHECKING:
    from drip.faucet.service import FaucetService

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Outcome of a probe."""

    OK = "ok"
    ERROR = "error"
    NOT_READY = "not_ready"


@dataclass
class CheckResult:
    """Outcome of one readiness check."""

    name: str
    status: HealthStatus
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == HealthStatus.OK

    def describe(self) -> str:
        """Short text for the /ready body: ``ok`` or the failure reason."""
        if self.ok:
            return "ok"
        return self.message or self.status.value


@dataclass
class HealthResult:
    """Aggregate of all readiness checks."""

    status: HealthStatus
    checks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        body: dict = {"status": self.status.value}
        if self.checks:
            body["checks"] = self.checks
        return body


class HealthCheck(ABC):
    """A named readiness condition."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Key the result is reported under."""
        ...

    @abstractmethod
    async def check(self) -> CheckResult:
        """Evaluate the condition.

        Returns
        -------
        CheckResult
            ``OK`` if the service may take traffic as far as this check knows.
        """
        ...


class LCDHealthCheck(HealthCheck):
    """The node answers and reports the network the faucet is configured for.

    Parameters
    ----------
    client : LedgerClient
        Client for the faucet's node.
    chain_id : str
        Network the node must report.
    """

    def __init__(self, client: LedgerClient, chain_id: str):
        self._client = client
        self._chain_id = chain_id

    @property
    def name(self) -> str:
        return "node"

    async def check(self) -> CheckResult:
        try:
            info = await self._client.node_info()
        except NetworkError as e:
            return CheckResult(name=self.name, status=HealthStatus.ERROR, message=str(e))

        network = (info.get("node_info") or {}).get("network")
        if network != self._chain_id:
            return CheckResult(
                name=self.name,
                status=HealthStatus.ERROR,
                message=f"node is on network {network!r}, expected {self._chain_id!r}",
            )
        return CheckResult(name=self.name, status=HealthStatus.OK)


class FaucetRunningCheck(HealthCheck):
    """The faucet service has been started and not yet stopped."""

    def __init__(self, service: "FaucetService"):
        self._service = service

    @property
    def name(self) -> str:
        return "faucet"

    async def check(self) -> CheckResult:
        if self._service.is_running:
            return CheckResult(name=self.name, status=HealthStatus.OK)
        return CheckResult(
            name=self.name,
            status=HealthStatus.NOT_READY,
            message="faucet service is not running",
        )


class HealthServer:
    """aiohttp server for probes and metrics, separate from the faucet port.

    Parameters
    ----------
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    checks : list[HealthCheck] | None
        Readiness checks run by /ready.
    check_timeout : float
        Seconds a single check may take before it counts as failed.
    """

    def __init__(
        self,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 8080,
        checks: list[HealthCheck] | None = None,
        check_timeout: float = 5.0,
    ):
        self._host = host
        self._port = port
        self._checks: list[HealthCheck] = list(checks or [])
        self._check_timeout = check_timeout
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def add_check(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def create_app(self) -> web.Application:
        """Build the probe application."""
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/ready", self._handle_ready)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        logger.info("Health server started", extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        self._site = None
        logger.info("Health server stopped")

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": HealthStatus.OK.value})

    async def _handle_ready(self, _request: web.Request) -> web.Response:
        result = await self.readiness()
        return web.json_response(
            result.to_dict(), status=200 if result.status == HealthStatus.OK else 503
        )

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(REGISTRY),
            content_type="text/plain",
            charset="utf-8",
        )

    async def _run_check(self, check: HealthCheck) -> CheckResult:
        """Run one check, turning timeouts and exceptions into failures."""
        try:
            return await asyncio.wait_for(check.check(), timeout=self._check_timeout)
        except asyncio.TimeoutError:
            return CheckResult(
                name=check.name,
                status=HealthStatus.ERROR,
                message=f"timed out after {self._check_timeout}s",
            )
        except Exception as e:
            logger.exception("Health check failed", extra={"check": check.name})
            return CheckResult(
                name=check.name,
                status=HealthStatus.ERROR,
                message=f"error: {type(e).__name__}: {e}",
            )

    async def readiness(self) -> HealthResult:
        """Run all readiness checks concurrently."""
        if not self._checks:
            return HealthResult(status=HealthStatus.OK)

        results = await asyncio.gather(*(self._run_check(c) for c in self._checks))
        return HealthResult(
            status=HealthStatus.OK if all(r.ok for r in results) else HealthStatus.NOT_READY,
            checks={r.name: r.describe() for r in results},
        )
