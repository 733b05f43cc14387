"""Stat-polling watcher over the source tree and the fragments entry file."""

from __future__ import annotations

from groq_extract.config import ExtractConfig
from groq_extract.index.discovery import (
    build_file_record,
    detect_source_delta,
    discover_files,
    record_map,
)
from groq_extract.index.models import FileRecord


class SourceWatcher:
    """Reports files added or modified since the previous poll."""

    def __init__(self, config: ExtractConfig) -> None:
        self._config = config
        self._records: dict[str, FileRecord] = {}
        self._primed = False

    def snapshot(self) -> list[FileRecord]:
        records = discover_files(self._config.root, self._config.source_roots, self._config.sources)
        entry = self._config.fragments.entry_path
        if entry is not None:
            extra = build_file_record(entry)
            if extra is not None:
                records = sorted(
                    {**record_map(records), extra.path: extra}.values(),
                    key=lambda item: item.path,
                )
        return records

    def prime(self) -> None:
        """Record the current state without reporting changes."""
        self._records = record_map(self.snapshot())
        self._primed = True

    def poll(self) -> tuple[str, ...]:
        """Return changed paths in deterministic order; removed files are ignored."""
        current = self.snapshot()
        if not self._primed:
            self._records = record_map(current)
            self._primed = True
            return ()
        delta = detect_source_delta(previous=self._records, current_records=current)
        self._records = record_map(current)
        return delta.changed

    @property
    def tracked_paths(self) -> tuple[str, ...]:
        return tuple(sorted(self._records))
