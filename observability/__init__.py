"""Observability utilities for the feedback pipeline."""
from .logger import log_event, new_trace_id
from .tracing import span

__all__ = ["log_event", "new_trace_id", "span"]
