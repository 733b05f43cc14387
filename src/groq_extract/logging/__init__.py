"""Structured logging utilities."""

from .console import configure_logging
from .events import ExtractionEvent, JsonlEventLog, sanitize_metadata, utc_timestamp

__all__ = [
    "ExtractionEvent",
    "JsonlEventLog",
    "configure_logging",
    "sanitize_metadata",
    "utc_timestamp",
]
