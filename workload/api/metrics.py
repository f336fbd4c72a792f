from __future__ import annotations

from fastapi import APIRouter, Response

from workload.observability.metrics import RequestMetrics


def build_router(metrics: RequestMetrics) -> APIRouter:
    router = APIRouter(tags=["metrics"])

    @router.get("/metrics")
    def scrape() -> Response:
        return Response(content=metrics.render(), media_type=metrics.content_type)

    return router
