from typing import Callable

import structlog
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from starlette.background import BackgroundTask

from workload.config import Settings
from workload.observability.metrics import RequestMetrics
from workload.observability.middleware import instrument


def build_router(settings: Settings, metrics: RequestMetrics, terminate: Callable[[int], None]) -> APIRouter:
    router = APIRouter(tags=["faults"], default_response_class=PlainTextResponse)

    @router.get("/panic")
    @instrument(metrics, "/panic")
    async def panic() -> PlainTextResponse:
        return PlainTextResponse("intentional request failure\n", status_code=500)

    @router.get("/crash")
    async def crash() -> PlainTextResponse:
        exit_code = settings.crash_exit_code

        # Runs after the body has been handed to the server, not before.
        def _exit_process() -> None:
            structlog.get_logger("faults").warning("process_crash_requested", exit_code=exit_code)
            terminate(exit_code)

        return PlainTextResponse("crashing process\n", background=BackgroundTask(_exit_process))

    return router
