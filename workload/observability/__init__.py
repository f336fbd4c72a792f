"""Observability helpers for the workload service.

structlog JSON logs with request contextvars, plus a Prometheus registry that
is owned by the server and passed to the pieces that record into it.
"""
