from __future__ import annotations


class ShutdownTimeoutError(Exception):
    """Graceful drain ran out of time with requests still in flight."""

    def __init__(self, grace_seconds: float, in_flight: int) -> None:
        super().__init__(f"{in_flight} request(s) still in flight after {grace_seconds:g}s grace period")
        self.grace_seconds = grace_seconds
        self.in_flight = in_flight
