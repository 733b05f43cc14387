"""Deterministic source file discovery and change detection."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

from groq_extract.config import SourcesConfig
from groq_extract.index.models import FileRecord, SourceDelta
from groq_extract.paths import normalize_path


def discover_files(
    root: Path,
    source_roots: tuple[Path, ...],
    config: SourcesConfig,
) -> list[FileRecord]:
    """Discover candidate source files under each source root, sorted by path."""
    resolved_root = root.resolve()
    include_extensions = {ext.lower() for ext in config.include_extensions}
    excluded_dir_names = _excluded_dir_names(config.exclude_globs)
    seen: dict[str, FileRecord] = {}
    for source_root in source_roots:
        if not source_root.is_dir():
            continue
        for record in _walk(
            root=resolved_root,
            start=source_root.resolve(),
            include_extensions=include_extensions,
            exclude_globs=config.exclude_globs,
            excluded_dir_names=excluded_dir_names,
        ):
            seen[record.path] = record
    return [seen[path] for path in sorted(seen)]


def detect_source_delta(
    previous: dict[str, FileRecord],
    current_records: list[FileRecord],
) -> SourceDelta:
    """Compute deterministic added/updated/unchanged/removed sets."""
    current = record_map(current_records)
    previous_paths = set(previous.keys())
    current_paths = set(current.keys())

    added = sorted(current_paths - previous_paths)
    removed = sorted(previous_paths - current_paths)

    updated: list[str] = []
    unchanged: list[str] = []
    for path in sorted(previous_paths & current_paths):
        if previous[path] == current[path]:
            unchanged.append(path)
            continue
        updated.append(path)

    return SourceDelta(
        added=tuple(added),
        updated=tuple(updated),
        unchanged=tuple(unchanged),
        removed=tuple(removed),
    )


def record_map(records: list[FileRecord]) -> dict[str, FileRecord]:
    """Map records by normalized path."""
    return {record.path: record for record in records}


def build_file_record(path: Path) -> FileRecord | None:
    """Stat a single file, returning None when it is gone."""
    try:
        stat = path.stat()
    except OSError:
        return None
    return FileRecord(path=normalize_path(path), size=stat.st_size, mtime_ns=stat.st_mtime_ns)


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output


def _walk(
    *,
    root: Path,
    start: Path,
    include_extensions: set[str],
    exclude_globs: tuple[str, ...],
    excluded_dir_names: set[str],
) -> list[FileRecord]:
    records: list[FileRecord] = []
    stack: list[Path] = [start]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = _relative_posix(full_path, root)
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names:
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, exclude_globs):
                continue
            if full_path.suffix.lower() not in include_extensions:
                continue
            try:
                stat = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            records.append(
                FileRecord(
                    path=normalize_path(full_path),
                    size=stat.st_size,
                    mtime_ns=stat.st_mtime_ns,
                )
            )
    return records


def _relative_posix(path: Path, root: Path) -> str:
    if path.is_relative_to(root):
        return path.relative_to(root).as_posix()
    return path.as_posix()
