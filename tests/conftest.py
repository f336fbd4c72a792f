from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from workload.config import Settings
from workload.main import create_app
from workload.observability.metrics import RequestMetrics
from workload.services.readiness import ReadinessFlag


class RecordingTerminator:
    """Stands in for ``os._exit`` so crash requests can be asserted on."""

    def __init__(self) -> None:
        self.exit_codes: list[int] = []

    def __call__(self, code: int) -> None:
        self.exit_codes.append(code)


@pytest.fixture
def settings() -> Settings:
    # Keep the simulated work short; tests compare against the configured values.
    return Settings(cpu_burn_ms=150, latency_delay_ms=200)


@pytest.fixture
def metrics() -> RequestMetrics:
    return RequestMetrics()


@pytest.fixture
def readiness() -> ReadinessFlag:
    return ReadinessFlag()


@pytest.fixture
def terminator() -> RecordingTerminator:
    return RecordingTerminator()


@pytest.fixture
def app(
    settings: Settings,
    metrics: RequestMetrics,
    readiness: ReadinessFlag,
    terminator: RecordingTerminator,
) -> FastAPI:
    return create_app(settings=settings, metrics=metrics, readiness=readiness, terminate=terminator)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
