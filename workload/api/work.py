import asyncio

from fastapi import APIRouter

from workload.config import Settings
from workload.models.schemas import WorkResponse
from workload.observability.metrics import RequestMetrics
from workload.observability.middleware import instrument
from workload.services.simulation import burn_cpu, format_duration, rfc3339_nano


def build_router(settings: Settings, metrics: RequestMetrics) -> APIRouter:
    router = APIRouter(prefix="/work", tags=["work"])

    # Baseline: no intentional problems.
    @router.get("", response_model=WorkResponse, response_model_exclude_none=True)
    @instrument(metrics, "/work")
    async def work() -> WorkResponse:
        return WorkResponse(mode="fine", time=rfc3339_nano())

    # Plain def: FastAPI runs it on the thread pool, so the spin never blocks the event loop.
    @router.get("/cpu", response_model=WorkResponse, response_model_exclude_none=True)
    @instrument(metrics, "/work/cpu")
    def work_cpu() -> WorkResponse:
        burn_cpu(settings.cpu_burn_seconds)
        return WorkResponse(mode="cpu", burn=f"{settings.cpu_burn_ms}ms", time=rfc3339_nano())

    @router.get("/latency", response_model=WorkResponse, response_model_exclude_none=True)
    @instrument(metrics, "/work/latency")
    async def work_latency() -> WorkResponse:
        await asyncio.sleep(settings.latency_delay_seconds)
        return WorkResponse(
            mode="latency",
            delay=format_duration(settings.latency_delay_ms),
            time=rfc3339_nano(),
        )

    return router
