"""Synthetic workload HTTP service for autoscaling and alerting drills."""

__version__ = "0.1.0"
