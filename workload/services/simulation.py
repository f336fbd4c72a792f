from __future__ import annotations

import time
from datetime import datetime, timezone

_MASK64 = (1 << 64) - 1


def burn_cpu(duration_seconds: float) -> int:
    """Spin on integer arithmetic until ``duration_seconds`` of wall clock pass.

    Never sleeps or yields, so the calling thread keeps a core busy for the whole
    interval. Returns the final mixing state.
    """

    deadline = time.perf_counter() + duration_seconds
    x = 1
    while time.perf_counter() < deadline:
        x = (x * 1664525 + 1013904223) & _MASK64
        if x % 7 == 0:
            x ^= (x << 13) & _MASK64
    return x


def rfc3339_nano(ns: int | None = None) -> str:
    """UTC timestamp with nanosecond precision, trailing zeros trimmed (``...T12:00:00.5Z``)."""

    if ns is None:
        ns = time.time_ns()
    seconds, nanos = divmod(ns, 1_000_000_000)
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    if nanos:
        stamp += "." + f"{nanos:09d}".rstrip("0")
    return stamp + "Z"


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms / 1000
    if ms % 1000 == 0:
        return f"{ms // 1000}s"
    return f"{seconds:g}s"
