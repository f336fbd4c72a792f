from __future__ import annotations

import asyncio
import functools
import inspect
import uuid
from time import perf_counter
from typing import Any, Callable, TypeVar

import structlog
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException
from starlette.responses import Response

from workload.observability.metrics import RequestMetrics


F = TypeVar("F", bound=Callable[..., Any])


def _status_of(result: Any) -> int:
    # Handlers returning a model or dict get FastAPI's default status.
    if isinstance(result, Response):
        return result.status_code
    return 200


def instrument(metrics: RequestMetrics, path: str) -> Callable[[F], F]:
    """Record latency and status for one named route handler.

    Works for both ``async def`` and plain ``def`` handlers and keeps the kind, so
    FastAPI still runs sync handlers on its thread pool. The response is returned
    untouched.
    """

    def decorator(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = perf_counter()
                status_code: int | None = 500
                try:
                    result = await fn(*args, **kwargs)
                    status_code = _status_of(result)
                    return result
                except HTTPException as exc:
                    status_code = exc.status_code
                    raise
                except asyncio.CancelledError:
                    # Cut off by shutdown: not a response, so not a sample.
                    status_code = None
                    raise
                finally:
                    if status_code is not None:
                        metrics.observe_request(path, status_code, perf_counter() - start)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = perf_counter()
            status_code = 500
            try:
                result = fn(*args, **kwargs)
                status_code = _status_of(result)
                return result
            except HTTPException as exc:
                status_code = exc.status_code
                raise
            finally:
                metrics.observe_request(path, status_code, perf_counter() - start)

        return sync_wrapper  # type: ignore[return-value]

    return decorator


class RequestLoggingMiddleware:
    """Tracks in-flight requests and writes one access log line per request."""

    def __init__(self, app: Callable[..., Any], metrics: RequestMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        method = scope.get("method")

        self.metrics.request_started()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = perf_counter()
        status_code: int = 200
        response_started = False
        cancelled = False

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code, response_started

            if message.get("type") == "http.response.start":
                response_started = True
                status_code = int(message.get("status", 200))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except asyncio.CancelledError:
            cancelled = True
            raise
        except BaseException:
            if not response_started:
                status_code = 500
            raise
        finally:
            self.metrics.request_finished()

            # A request cancelled at shutdown never completed; it gets no access line.
            if not cancelled:
                structlog.get_logger("access").info(
                    "http_request",
                    path=path,
                    method=method,
                    code=status_code,
                    ms=int((perf_counter() - start) * 1000),
                )

            structlog.contextvars.clear_contextvars()
