from __future__ import annotations

import asyncio
import signal
import socket
from time import monotonic
from types import FrameType

import structlog
import uvicorn

from workload.config import Settings, get_settings
from workload.errors import ShutdownTimeoutError
from workload.main import create_app
from workload.observability.logging import configure_logging
from workload.observability.metrics import RequestMetrics
from workload.services.readiness import ReadinessFlag


logger = structlog.get_logger("server")


async def wait_for_drain(metrics: RequestMetrics, grace_seconds: float, poll_interval: float = 0.05) -> int:
    """Wait until no requests are in flight.

    Returns the number of requests still open when the grace period ran out, or 0
    once everything has drained.
    """

    deadline = monotonic() + grace_seconds
    while True:
        in_flight = metrics.in_flight
        if in_flight <= 0:
            return 0
        if monotonic() >= deadline:
            return in_flight
        await asyncio.sleep(poll_interval)


class WorkloadServer(uvicorn.Server):
    """uvicorn server that drops readiness as soon as an exit signal arrives.

    uvicorn closes the listener and waits for open requests. The grace period is
    enforced here rather than by uvicorn: at the deadline the stragglers are
    counted, reported as ``shutdown_error`` and uvicorn is told to stop waiting.
    """

    def __init__(
        self,
        config: uvicorn.Config,
        metrics: RequestMetrics,
        readiness: ReadinessFlag,
        grace_seconds: float,
    ) -> None:
        super().__init__(config)
        self.metrics = metrics
        self.readiness = readiness
        self.grace_seconds = grace_seconds
        self.shutdown_error: ShutdownTimeoutError | None = None

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if not self.should_exit:
            # Stop receiving traffic before the listener goes away.
            self.readiness.mark_not_ready()
            logger.info("shutdown_started", signal=signal.Signals(sig).name)
        super().handle_exit(sig, frame)

    async def _enforce_grace(self) -> int:
        outstanding = await wait_for_drain(self.metrics, self.grace_seconds)
        if outstanding:
            self.force_exit = True
        return outstanding

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        enforcer = asyncio.create_task(self._enforce_grace())
        try:
            await super().shutdown(sockets=sockets)
        finally:
            # uvicorn re-raises captured signals once serving ends; a drained exit is status 0.
            self._captured_signals.clear()

        if enforcer.done():
            outstanding = enforcer.result()
        else:
            enforcer.cancel()
            outstanding = self.metrics.in_flight

        if outstanding:
            self.shutdown_error = ShutdownTimeoutError(self.grace_seconds, outstanding)
            logger.error("shutdown_error", error=str(self.shutdown_error))
            return
        logger.info("shutdown_complete")


def build_server(
    settings: Settings,
    metrics: RequestMetrics | None = None,
    readiness: ReadinessFlag | None = None,
) -> WorkloadServer:
    metrics = metrics or RequestMetrics()
    readiness = readiness or ReadinessFlag()
    app = create_app(settings=settings, metrics=metrics, readiness=readiness)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.keep_alive_timeout_seconds,
        # WorkloadServer bounds the drain itself.
        timeout_graceful_shutdown=None,
        log_config=None,
        access_log=False,
    )
    return WorkloadServer(config, metrics=metrics, readiness=readiness, grace_seconds=settings.shutdown_grace_seconds)


def serve(settings: Settings | None = None) -> WorkloadServer:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    server = build_server(settings)
    logger.info("listening", addr=settings.listen_address)
    server.run()
    return server
