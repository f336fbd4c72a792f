from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from workload.services.readiness import ReadinessFlag


def build_router(readiness: ReadinessFlag) -> APIRouter:
    router = APIRouter(tags=["health"], default_response_class=PlainTextResponse)

    @router.get("/healthz")
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @router.get("/readyz")
    async def readyz() -> PlainTextResponse:
        if readiness.is_ready():
            return PlainTextResponse("ready")
        return PlainTextResponse("not-ready", status_code=503)

    @router.get("/fail/ready")
    async def fail_ready() -> PlainTextResponse:
        readiness.mark_not_ready()
        return PlainTextResponse("readiness=false")

    @router.get("/recover/ready")
    async def recover_ready() -> PlainTextResponse:
        readiness.mark_ready()
        return PlainTextResponse("readiness=true")

    return router
