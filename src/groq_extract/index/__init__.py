"""Source discovery and change watching package."""

from .discovery import (
    build_file_record,
    detect_source_delta,
    discover_files,
    record_map,
)
from .models import FileRecord, SourceDelta
from .watcher import SourceWatcher

__all__ = [
    "FileRecord",
    "SourceDelta",
    "SourceWatcher",
    "build_file_record",
    "detect_source_delta",
    "discover_files",
    "record_map",
]
