import os
from typing import Callable

from fastapi import FastAPI

from workload.api import faults, health, metrics as metrics_api, work
from workload.config import Settings, get_settings
from workload.observability.metrics import RequestMetrics
from workload.observability.middleware import RequestLoggingMiddleware
from workload.services.readiness import ReadinessFlag


def create_app(
    settings: Settings | None = None,
    metrics: RequestMetrics | None = None,
    readiness: ReadinessFlag | None = None,
    terminate: Callable[[int], None] = os._exit,
) -> FastAPI:
    """Build the workload application around explicitly owned state.

    ``metrics`` and ``readiness`` are shared with the server lifecycle, so callers
    that drive shutdown pass in the same instances they will later read.
    """

    settings = settings or get_settings()
    metrics = metrics or RequestMetrics()
    readiness = readiness or ReadinessFlag()

    app = FastAPI(title="Synthetic Workload", version="0.1.0")
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.readiness = readiness

    app.include_router(health.build_router(readiness))
    app.include_router(faults.build_router(settings, metrics, terminate))
    app.include_router(work.build_router(settings, metrics))
    app.include_router(metrics_api.build_router(metrics))

    app.add_middleware(RequestLoggingMiddleware, metrics=metrics)
    return app
